"""Consistency checks between the metadata store and the store directory."""

from .checker import ConsistencyChecker
from .models import Finding, RenameOperation, RepairReport

__all__ = ["ConsistencyChecker", "Finding", "RenameOperation", "RepairReport"]
