"""
Repository layer exports.
"""

from db.repositories.consumption_repository import ConsumptionRepository
from db.repositories.processing_log_repository import ProcessingLogRepository

__all__ = [
    "ConsumptionRepository",
    "ProcessingLogRepository",
]
