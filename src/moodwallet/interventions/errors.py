"""Error taxonomy for the intervention engine and the savings ledger.

Client-facing errors (ValidationError, NoSavingsError, EstimateNotFoundError,
DuplicateConfirmationError) are mapped to HTTP status codes in main.py.
RuleEvaluationError never leaves the engine.
"""

from __future__ import annotations

from typing import Any


class InterventionError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(InterventionError):
    """Malformed snapshot, negative amount or unknown enum value."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


class NoSavingsError(InterventionError):
    """A confirmation where the actual spend is at or above the original amount."""

    def __init__(self, original_amount: Any, actual_amount: Any):
        super().__init__(
            "No savings to record - actual amount "
            f"({actual_amount}) is greater than or equal to original amount "
            f"({original_amount})"
        )
        self.original_amount = original_amount
        self.actual_amount = actual_amount


class DuplicateRuleError(InterventionError):
    """Raised at startup when two rules share an id."""

    def __init__(self, rule_id: str):
        super().__init__(f"Rule already registered: {rule_id}")
        self.rule_id = rule_id


class RuleEvaluationError(InterventionError):
    """A single rule's condition or action raised."""

    def __init__(self, rule_id: str, stage: str, cause: BaseException):
        super().__init__(f"Rule {rule_id} failed during {stage}: {cause!r}")
        self.rule_id = rule_id
        self.stage = stage
        self.cause = cause


class EstimateNotFoundError(InterventionError):
    def __init__(self, entry_id: str):
        super().__init__(f"Savings estimate not found: {entry_id}")
        self.entry_id = entry_id


class DuplicateConfirmationError(InterventionError):
    def __init__(self, entry_id: str, existing_id: str | None = None):
        super().__init__(f"Savings estimate already confirmed: {entry_id}")
        self.entry_id = entry_id
        self.existing_id = existing_id
