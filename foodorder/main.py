"""
FastAPI Application Entry Point

Food Ordering System HTTP API.

Endpoints:
    - GET/POST /api/foods: Catalog listing and registration
    - GET/PUT/DELETE /api/foods/{id}: Single food item
    - POST /api/customers, POST /api/customers/login: Customer accounts
    - POST /api/payment-methods: Wallet and card registration
    - POST /api/orders/preview: Price an order without paying
    - POST /api/orders: Place an order
    - GET /api/orders, GET /api/orders/{id}: Order history
    - POST /api/reports/orders: Excel order report
    - GET /health: System health check

Author: Food Ordering Team
Version: 1.0.0
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from foodorder.container import Container, build_container
from foodorder.core.config import Settings, get_settings, setup_logging
from foodorder.core.errors import OrderingError
from foodorder.schemas import (
    CustomerCreate,
    CustomerLogin,
    CustomerResponse,
    ErrorResponse,
    FoodCreate,
    FoodResponse,
    FoodUpdate,
    HealthResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderLineResponse,
    OrderListResponse,
    OrderPreviewRequest,
    OrderPreviewResponse,
    OrderResponse,
    PaymentMethodCreate,
    PaymentMethodResponse,
    ReportResponse,
)

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    401: {"model": ErrorResponse},
    402: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build and open the service container on startup, close it on shutdown.
    """
    settings: Settings = app.state.settings

    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    container = build_container(settings)
    await container.open()
    app.state.container = container
    logger.info(f"Payment Service: {container.payments.provider_name}")

    missing = settings.validate_production_config()
    if missing:
        logger.warning(f"Missing production config: {missing}")

    logger.info("Application ready")

    yield  # Application runs

    logger.info("Shutting down...")
    await container.close()
    logger.info("Cleanup complete")


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_container(request: Request) -> Container:
    return request.app.state.container


def require_admin(
    request: Request,
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
) -> None:
    """Guard catalog writes when an admin key is configured."""
    expected = request.app.state.settings.admin_api_key
    if expected and x_admin_key != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin key")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create the FastAPI application bound to ``settings``."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Food ordering back end: catalog with stock, wallet and card "
            "payments, and an order workflow that charges before committing stock."
        ),
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_routes(app)
    _register_error_handlers(app)
    return app


def _register_routes(app: FastAPI) -> None:

    # =========================================================================
    # ROOT & HEALTH
    # =========================================================================

    @app.get("/", tags=["Root"])
    async def root(request: Request) -> dict[str, str]:
        """API root with navigation links."""
        settings = request.app.state.settings
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "environment": settings.env_mode.value,
            "documentation": "/docs",
            "health": "/health",
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"], summary="System Health Check")
    async def health_check(container: Container = Depends(get_container)) -> HealthResponse:
        """Verify the database and the payment ledger are reachable."""
        db_status = "healthy" if await container.database.ping() else "unhealthy"
        payment_status = "healthy" if await container.payments.health_check() else "unhealthy"

        overall = "operational" if db_status == payment_status == "healthy" else "degraded"

        return HealthResponse(
            status=overall,
            database=db_status,
            payment_service=payment_status,
            timestamp=datetime.now(),
        )

    # =========================================================================
    # CATALOG
    # =========================================================================

    @app.get("/api/foods", response_model=list[FoodResponse], tags=["Catalog"])
    async def list_foods(container: Container = Depends(get_container)) -> list[FoodResponse]:
        return [FoodResponse.from_domain(food) for food in await container.catalog.list_foods()]

    @app.post(
        "/api/foods",
        response_model=FoodResponse,
        status_code=status.HTTP_201_CREATED,
        responses=ERROR_RESPONSES,
        tags=["Catalog"],
        dependencies=[Depends(require_admin)],
    )
    async def create_food(
        food_data: FoodCreate,
        container: Container = Depends(get_container),
    ) -> FoodResponse:
        food = await container.catalog.register(
            name=food_data.name,
            price=food_data.price,
            food_type=food_data.food_type,
            quantity=food_data.quantity,
        )
        return FoodResponse.from_domain(food)

    @app.get("/api/foods/{food_id}", response_model=FoodResponse, responses=ERROR_RESPONSES, tags=["Catalog"])
    async def get_food(food_id: int, container: Container = Depends(get_container)) -> FoodResponse:
        return FoodResponse.from_domain(await container.catalog.get_food(food_id))

    @app.put(
        "/api/foods/{food_id}",
        response_model=FoodResponse,
        responses=ERROR_RESPONSES,
        tags=["Catalog"],
        dependencies=[Depends(require_admin)],
    )
    async def update_food(
        food_id: int,
        food_data: FoodUpdate,
        container: Container = Depends(get_container),
    ) -> FoodResponse:
        food = await container.catalog.update(
            food_id,
            name=food_data.name,
            price=food_data.price,
            food_type=food_data.food_type,
        )
        if food_data.quantity is not None:
            food = await container.catalog.set_stock(food_id, food_data.quantity)
        return FoodResponse.from_domain(food)

    @app.delete(
        "/api/foods/{food_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        responses=ERROR_RESPONSES,
        tags=["Catalog"],
        dependencies=[Depends(require_admin)],
    )
    async def delete_food(food_id: int, container: Container = Depends(get_container)) -> None:
        await container.catalog.delete(food_id)

    # =========================================================================
    # CUSTOMERS & PAYMENT METHODS
    # =========================================================================

    @app.post(
        "/api/customers",
        response_model=CustomerResponse,
        status_code=status.HTTP_201_CREATED,
        responses=ERROR_RESPONSES,
        tags=["Customers"],
    )
    async def register_customer(
        customer_data: CustomerCreate,
        container: Container = Depends(get_container),
    ) -> CustomerResponse:
        customer = await container.customers.register(
            name=customer_data.name,
            age=customer_data.age,
            phone_number=customer_data.phone_number,
            gender=customer_data.gender,
            password=customer_data.password,
        )
        return CustomerResponse.from_domain(customer)

    @app.post("/api/customers/login", response_model=CustomerResponse, responses=ERROR_RESPONSES, tags=["Customers"])
    async def login(
        credentials: CustomerLogin,
        container: Container = Depends(get_container),
    ) -> CustomerResponse:
        customer = await container.customers.login(credentials.customer_id, credentials.password)
        return CustomerResponse.from_domain(customer)

    @app.get(
        "/api/customers/{customer_id}/orders",
        response_model=OrderListResponse,
        responses=ERROR_RESPONSES,
        tags=["Customers"],
    )
    async def customer_orders(
        customer_id: int,
        container: Container = Depends(get_container),
    ) -> OrderListResponse:
        await container.customers.get_customer(customer_id)
        orders = await container.orders.get_orders_by_customer(customer_id)
        return OrderListResponse(
            total=len(orders),
            orders=[OrderResponse.from_domain(order) for order in orders],
        )

    @app.post(
        "/api/payment-methods",
        response_model=PaymentMethodResponse,
        status_code=status.HTTP_201_CREATED,
        responses=ERROR_RESPONSES,
        tags=["Payments"],
    )
    async def register_payment_method(
        method_data: PaymentMethodCreate,
        container: Container = Depends(get_container),
    ) -> PaymentMethodResponse:
        if method_data.customer_id is not None:
            await container.customers.get_customer(method_data.customer_id)
        method = await container.payments.register_method(
            kind=method_data.payment_type,
            identifier=method_data.identifier,
            secret=method_data.secret,
            balance=method_data.balance,
            customer_id=method_data.customer_id,
            expiry_date=method_data.expiry_date,
        )
        return PaymentMethodResponse.from_domain(method)

    # =========================================================================
    # ORDERS
    # =========================================================================

    @app.post(
        "/api/orders/preview",
        response_model=OrderPreviewResponse,
        responses=ERROR_RESPONSES,
        tags=["Orders"],
        summary="Price an order without paying",
    )
    async def preview_order(
        preview: OrderPreviewRequest,
        container: Container = Depends(get_container),
    ) -> OrderPreviewResponse:
        lines = await container.orders.price_lines(
            [(item.food_id, item.quantity) for item in preview.items]
        )
        return OrderPreviewResponse(
            lines=[OrderLineResponse.from_domain(line) for line in lines],
            total=container.orders.calculate_total(lines),
            currency=container.settings.currency,
        )

    @app.post(
        "/api/orders",
        response_model=OrderCreateResponse,
        status_code=status.HTTP_201_CREATED,
        responses=ERROR_RESPONSES,
        tags=["Orders"],
        summary="Create Order",
    )
    async def create_order(
        order_data: OrderCreate,
        container: Container = Depends(get_container),
    ) -> OrderCreateResponse:
        """
        Price the lines, charge the payment method, then commit stock.
        """
        logger.info(f"Creating order for customer #{order_data.customer_id}")

        order = await container.orders.create_order(
            customer_id=order_data.customer_id,
            lines=[(item.food_id, item.quantity) for item in order_data.items],
            payment_kind=order_data.payment_type,
            identifier=order_data.identifier,
            secret=order_data.secret,
        )

        return OrderCreateResponse(
            success=True,
            message="Order placed successfully!",
            order=OrderResponse.from_domain(order),
        )

    @app.get("/api/orders", response_model=OrderListResponse, tags=["Orders"], summary="List Orders")
    async def list_orders(container: Container = Depends(get_container)) -> OrderListResponse:
        orders = await container.orders.get_all_orders()
        return OrderListResponse(
            total=len(orders),
            orders=[OrderResponse.from_domain(order) for order in orders],
        )

    @app.get("/api/orders/{order_id}", response_model=OrderResponse, responses=ERROR_RESPONSES, tags=["Orders"])
    async def get_order(order_id: int, container: Container = Depends(get_container)) -> OrderResponse:
        return OrderResponse.from_domain(await container.orders.get_order(order_id))

    # =========================================================================
    # REPORTS
    # =========================================================================

    @app.post("/api/reports/orders", response_model=ReportResponse, tags=["Reports"])
    async def export_orders_report(container: Container = Depends(get_container)) -> ReportResponse:
        """Write every order to the Excel report."""
        orders = await container.orders.get_all_orders()
        result = await run_in_threadpool(container.reports.export_orders, orders)
        if not result["success"]:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=result["message"])
        return ReportResponse(**result)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(OrderingError)
    async def ordering_error_handler(request: Request, exc: OrderingError) -> JSONResponse:
        """Map domain failures to their HTTP status."""
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": "HTTP Error", "detail": exc.detail},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")

        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal Server Error",
                "detail": str(exc) if request.app.state.settings.debug else "An unexpected error occurred",
            },
        )


setup_logging()
app = create_app()


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "foodorder.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
