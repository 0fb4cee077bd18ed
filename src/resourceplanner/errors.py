"""
Error taxonomy for the allocation engine.

Every error carries a machine-readable ``kind`` so callers can branch on it
without string matching. Duplicate conflicts and overallocation warnings are
not exceptions; they are evaluation outcomes (see ``evaluator``).
"""

from typing import Any, Dict, List, Optional


class PlannerError(Exception):
    """Base class for all engine errors."""

    kind = "planner_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(PlannerError):
    """Settings cannot support the computation (e.g. zero weekly hours for a country)."""

    kind = "configuration_error"


class ValidationError(PlannerError):
    """Input rejected before any evaluation takes place."""

    kind = "validation_error"

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.errors = errors or [message]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = list(self.errors)
        return data


class UnknownReferenceError(ValidationError):
    """An id does not resolve to an entity in the snapshot."""

    kind = "unknown_reference"

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(
            f"Unknown {entity_type} '{entity_id}'",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class CapacityComputationError(PlannerError):
    """Unexpected arithmetic or date failure while computing capacity."""

    kind = "capacity_computation_error"
