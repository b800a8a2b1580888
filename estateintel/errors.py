"""Exception hierarchy shared by the store layer, the services and the CLI."""
from typing import Any, Dict, Optional


class EstateIntelError(Exception):
    """Base class; carries an optional context dict for log lines."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class RecordNotFound(EstateIntelError, LookupError):
    """A requested entity id does not exist in the store."""

    def __init__(self, entity: str, record_id: Any):
        super().__init__(f"{entity} {record_id} not found", {"entity": entity, "id": str(record_id)})
        self.entity = entity
        self.record_id = record_id


class StoreUnavailable(EstateIntelError):
    """The backing database could not be reached or initialised."""


class InvalidInput(EstateIntelError, ValueError):
    """An argument is outside what a service or the store accepts."""
