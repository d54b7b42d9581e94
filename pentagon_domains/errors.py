"""
pentagon_domains/errors.py
══════════════════════════

Exception hierarchy for the abstract domains.

    ┌─────────────────────────────────────────────────────────────┐
    │  DomainError (base)                                         │
    │  ├── SemanticError          — aborts the current step       │
    │  │   └── InvalidIntervalError — low > high, stray NaN, …    │
    │  └── ConfigurationError     — bad DomainConfig settings     │
    │      └── UnknownDomainError — unregistered domain tag       │
    └─────────────────────────────────────────────────────────────┘

Only *domain-internal failures* are raised.  When a domain simply cannot
decide a fact (division by a divisor that may be zero, comparison against
⊤, an operator it does not model) the answer is a conservative lattice
value — ⊤, ``Satisfiability.UNKNOWN`` or the unchanged state — never an
exception.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """Stable identifiers, grouped by range.

    1000-1999: semantic failures inside a transfer function
    2000-2999: configuration problems
    9000-9999: internal errors
    """
    INCOMPATIBLE_STATES = 1000
    INVALID_INTERVAL = 1001
    INVALID_NUMBER = 1002
    INVALID_CONFIG = 2000
    UNKNOWN_DOMAIN = 2001
    INTERNAL_ERROR = 9000

    @property
    def label(self) -> str:
        return f"PD-{self.value:04d}"


class DomainError(Exception):
    """Base exception for every failure raised by the package."""

    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        hint: str = "",
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.hint = hint
        self.cause = cause

    def with_hint(self, hint: str) -> "DomainError":
        """Attach a hint and return ``self`` for chaining."""
        self.hint = hint
        return self

    def __str__(self) -> str:
        text = f"[{self.code.label}] {self.message}"
        if self.hint:
            text += f" (hint: {self.hint})"
        return text


class SemanticError(DomainError):
    """A transfer function met a combination it cannot classify."""

    default_code = ErrorCode.INCOMPATIBLE_STATES


class InvalidIntervalError(SemanticError):
    """An interval was built with bounds outside the representable forms."""

    default_code = ErrorCode.INVALID_INTERVAL


class ConfigurationError(DomainError):
    """Invalid ``DomainConfig`` contents."""

    default_code = ErrorCode.INVALID_CONFIG


class UnknownDomainError(ConfigurationError):
    """Requested a domain tag that is not registered."""

    default_code = ErrorCode.UNKNOWN_DOMAIN


__all__ = [
    "ErrorCode",
    "DomainError",
    "SemanticError",
    "InvalidIntervalError",
    "ConfigurationError",
    "UnknownDomainError",
]
