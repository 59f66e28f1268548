"""
Persistence layer for PayGate.

Exports the four tables (merchants, api_keys, payments, transactions),
the engine and session factory with its FastAPI dependency, and the
startup hook that creates the schema. Query helpers live in .repositories.
"""
from .init_db import (
    engine,
    create_engine_for_path,
    create_session_factory,
    initialize_database,
    get_db,
)
from .models import (
    Base,
    MerchantModel,
    ApiKeyModel,
    PaymentModel,
    TransactionModel
)

__all__ = [
    "engine",
    "create_engine_for_path",
    "create_session_factory",
    "initialize_database",
    "get_db",
    "Base",
    "MerchantModel",
    "ApiKeyModel",
    "PaymentModel",
    "TransactionModel",
]
