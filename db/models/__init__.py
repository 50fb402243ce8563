"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.consumption_record import ConsumptionRecord
from db.models.processing_log import ProcessingLog

__all__ = [
    "ConsumptionRecord",
    "ProcessingLog",
]
