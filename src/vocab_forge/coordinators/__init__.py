"""Coordinators - Orchestration layer connecting user actions with the catalog."""

from .edit_coordinator import EditCoordinator, FieldAccess
from .import_coordinator import ImportCoordinator
from .processing_scheduler import ProcessingOutcome, ProcessingScheduler
from .regeneration_coordinator import RegenerationCoordinator

__all__ = [
    "EditCoordinator",
    "FieldAccess",
    "ImportCoordinator",
    "ProcessingOutcome",
    "ProcessingScheduler",
    "RegenerationCoordinator",
]
