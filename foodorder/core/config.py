"""
Food Ordering Configuration

Settings for the API, storage, catalog rules and order workflow, read from
the environment (or .env) through Pydantic Settings.
Supports three modes:
    - DEVELOPMENT: Local SQLite file database
    - STAGING: Real database, verbose logging allowed
    - PRODUCTION: Real database, admin key required for catalog writes

Catalog price bounds, id starting points and the compensation switch for the
order workflow all live here.

Usage:
    from foodorder.core.config import get_settings

    settings = get_settings()
    if settings.refund_on_stock_failure:
        ...

Author: Food Ordering Team
Version: 1.0.0
"""

import logging
import sys
from decimal import Decimal
from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Deployment environment.

    Attributes:
        DEVELOPMENT: Local testing with a SQLite file database
        PRODUCTION: Live environment
        STAGING: Pre-production testing
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Runtime settings for the food ordering service.

    Every field can be set through an environment variable of the same name.
    Sensitive values (admin key) should NEVER be committed to version control.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Database
        database_url: SQLAlchemy async connection string
        database_echo: Log every SQL statement

        # Catalog rules
        min_food_price / max_food_price: Accepted price range
        first_food_id / first_customer_id / first_order_id: Counter seeds

        # Order workflow
        refund_on_stock_failure: Credit the charge back when stock
            cannot be committed after a successful payment
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Food Ordering System",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8001,
        description="API server port"
    )
    admin_api_key: Optional[str] = Field(
        default=None,
        description="Key expected in X-Admin-Key for catalog writes"
    )

    # ==========================================================================
    # DATABASE
    # ==========================================================================

    database_url: str = Field(
        default="sqlite+aiosqlite:///data/foodorder.db",
        description="SQLAlchemy async database URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Log all SQL statements"
    )

    # ==========================================================================
    # CATALOG RULES
    # ==========================================================================

    min_food_price: Decimal = Field(
        default=Decimal("0.01"),
        description="Lowest accepted food price"
    )
    max_food_price: Decimal = Field(
        default=Decimal("69.99"),
        description="Highest accepted food price"
    )
    first_food_id: int = Field(
        default=2000,
        description="First id issued to a food item"
    )
    first_customer_id: int = Field(
        default=1000,
        description="First id issued to a customer"
    )
    first_order_id: int = Field(
        default=1,
        description="First id issued to an order"
    )

    # ==========================================================================
    # PAYMENTS / ORDERS
    # ==========================================================================

    currency: str = Field(
        default="MYR",
        description="Currency every price and balance is expressed in"
    )
    refund_on_stock_failure: bool = Field(
        default=False,
        description="Credit a charge back if stock cannot be committed"
    )

    # ==========================================================================
    # FILE STORAGE
    # ==========================================================================

    data_directory: str = Field(
        default="data",
        description="Directory for data files"
    )
    excel_filename: str = Field(
        default="orders.xlsx",
        description="Excel report filename"
    )
    excel_lock_timeout: int = Field(
        default=30,
        description="Seconds to wait for file lock"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def uses_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.is_production:
            if not self.admin_api_key:
                missing.append("ADMIN_API_KEY")
            if self.uses_sqlite:
                missing.append("DATABASE_URL")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Return the process-wide Settings instance (built once).

    Example:
        >>> get_settings().first_food_id
        2000
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured root logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )

    return logging.getLogger("foodorder")


