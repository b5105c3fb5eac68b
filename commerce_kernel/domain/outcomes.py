"""
Engine outcome values.

Errors cross the engine boundary as values, not exceptions, so request
handlers can render precise UI state ("Setup Required", a disabled action)
without try/except.  Each value keeps the typed exception it was built
from so ``raise_for_error()`` can re-raise it for callers that prefer
exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from commerce_kernel.exceptions import CommerceRulesError


@dataclass(frozen=True)
class EngineError:
    """
    Structured error returned from an engine operation.

    ``fatal`` marks configuration-integrity bugs that should alert
    operators rather than be shown as a recoverable user message.
    """

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict, hash=False)
    fatal: bool = False
    exception: CommerceRulesError | None = field(
        default=None, repr=False, compare=False, hash=False
    )

    @classmethod
    def from_exception(cls, exc: CommerceRulesError, *, fatal: bool = False) -> EngineError:
        details = {
            k: v for k, v in vars(exc).items()
            if not k.startswith("_") and k not in ("args", "code")
        }
        return cls(
            code=exc.code,
            message=str(exc),
            details=details,
            fatal=fatal,
            exception=exc,
        )

    def raise_for_error(self) -> None:
        if self.exception is not None:
            raise self.exception
        raise CommerceRulesError(f"{self.code}: {self.message}")
