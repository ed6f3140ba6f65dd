"""
                        Services Module

Business logic for the food ordering back end.

Services:
    - catalog: food items, prices and stock
    - customers: registration and login
    - payment: authenticate-and-debit over wallets and cards
    - orders: the order workflow
    - validation: field rules returning ValidationResult
    - excel_manager: order report export
"""
