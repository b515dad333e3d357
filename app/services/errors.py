"""Typed failures raised by the progression engine. Each carries an HTTP status hint."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.schemas.summary import SummarySchema


class ProgressionError(Exception):
    status_code = 500
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ProgressionError):
    """Scenario, step, option reference or progress record does not exist where expected."""

    status_code = 404
    kind = "not_found"


class InvalidStateError(ProgressionError):
    """Progress is terminal, or the referenced step is not the live one."""

    status_code = 409
    kind = "invalid_state"


class InvalidInputError(ProgressionError):
    status_code = 400
    kind = "invalid_input"


class DataIntegrityError(ProgressionError):
    """The scenario graph is broken, e.g. an option points at a missing step."""

    status_code = 500
    kind = "data_integrity"


class UpstreamAnalysisError(ProgressionError):
    """The narrative collaborator failed or answered with something unusable.

    The numeric summary is attached so callers never lose the outcome.
    """

    status_code = 502
    kind = "upstream_analysis"

    def __init__(self, message: str, summary: SummarySchema | None = None):
        super().__init__(message)
        self.summary = summary
