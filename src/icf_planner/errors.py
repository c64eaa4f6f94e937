# File: src/icf_planner/errors.py

"""
Exception hierarchy for the ICF planner.

Data-quality problems (noisy segments, unresolved chains, dangling openings)
are reported in results and logged. The exceptions here are reserved for
invalid configuration, invalid caller payloads, and violated layout
invariants that point to an arithmetic or tolerance bug.
"""

from typing import Any, Dict, List, Optional


class IcfPlannerError(Exception):
    """
    Base class for planner exceptions.

    Carries a human-readable detail message plus an optional internal code
    and structured context so callers can report errors consistently.
    """

    def __init__(
        self,
        detail: str,
        internal_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the error with details.

        Args:
            detail: Human-readable error message
            internal_code: Optional internal error code for client reference
            extra: Optional additional error context
        """
        self.detail = detail
        self.internal_code = internal_code
        self.extra = extra or {}
        super().__init__(detail)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for reporting."""
        payload: Dict[str, Any] = {"detail": self.detail}
        if self.internal_code:
            payload["code"] = self.internal_code
        if self.extra:
            payload["extra"] = self.extra
        return payload


class ConfigurationError(IcfPlannerError, ValueError):
    """Raised when a configuration object fails validation."""

    def __init__(self, config_name: str, errors: List[str]):
        """
        Initialize with the failing configuration and its error list.

        Args:
            config_name: Name of the configuration class
            errors: Every validation message collected
        """
        self.errors = list(errors)
        detail = f"{config_name} validation failed:\n" + "\n".join(self.errors)
        super().__init__(
            detail=detail,
            internal_code="invalid_configuration",
            extra={"errors": self.errors},
        )


class PlanInputError(IcfPlannerError, ValueError):
    """Raised when a plan request payload cannot be validated."""

    def __init__(self, detail: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            detail=detail,
            internal_code="invalid_plan_input",
            extra={"errors": errors or []},
        )


class LayoutInvariantError(IcfPlannerError):
    """
    Raised when panel computation violates a layout invariant.

    A negative or non-finite width, or placed plus dropped widths that do not
    add up to the interval length, indicates a tolerance or arithmetic bug
    rather than bad input data, so the pipeline stops instead of guessing.
    """

    def __init__(self, detail: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(
            detail=detail,
            internal_code="layout_invariant_violated",
            extra=extra,
        )
