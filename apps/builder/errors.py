"""
Builder error types.

Conversion anomalies (ConversionAmbiguity, DanglingReference) are recorded on a
ConversionReport and never raised. Session preconditions raise
ValidationRejected before any I/O. Only collaborator failures surface as
NetworkFailure.
"""
from typing import Any, Dict, List


class BuilderError(Exception):
    """Base builder error."""
    pass


class StructureNotFound(BuilderError):
    """No structure has been saved for the workflow yet."""

    def __init__(self, workflow_id: str):
        super().__init__(f"No structure saved for workflow '{workflow_id}'")
        self.workflow_id = workflow_id


class ConversionAmbiguity(BuilderError):
    """A type tag or engine type id had no exact mapping."""
    pass


class DanglingReference(BuilderError):
    """A connection endpoint could not be resolved during conversion."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.details = details


class ValidationRejected(BuilderError):
    """Local precondition failed; nothing was sent over the network."""
    pass


class NetworkFailure(BuilderError):
    """The persistence/execution collaborator call failed."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class ConversionReport:
    """Anomalies recovered during a single conversion pass."""

    def __init__(self):
        self.warnings: List[str] = []
        self.dropped: List[Dict[str, Any]] = []

    def is_clean(self) -> bool:
        """Check if the conversion needed no fallbacks."""
        return not self.warnings and not self.dropped

    def add_ambiguity(self, issue: ConversionAmbiguity):
        """Record a type mapping that fell back to a default."""
        self.warnings.append(str(issue))

    def add_dangling(self, issue: DanglingReference):
        """Record a connection (or slot) that was skipped."""
        self.dropped.append({"reason": str(issue), **issue.details})

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "clean": self.is_clean(),
            "warnings": self.warnings,
            "dropped": self.dropped
        }
