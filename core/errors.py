"""Error taxonomy for the routing core.

- CollaboratorError: a subprocess/file collaborator failed. Recovered at the call
  site and surfaced as a status message; never unwinds through dispatch.
- InvariantViolation: a programming error (double-open modal, focus index out of
  range). Raised when the guard is strict, otherwise logged and turned into a no-op.
- User cancellation (Escape during capture, dismissing a popup) is a normal state
  transition and has no exception type.
"""

from __future__ import annotations

from typing import Any, Optional


class RoutingError(Exception):
    """Base class for routing core errors."""


class InvariantViolation(RoutingError):
    """Raised in strict mode when a core invariant would be broken."""

    def __init__(self, where: str, message: str) -> None:
        super().__init__(f'{where}: {message}')
        self.where = where
        self.message = message


class CollaboratorError(RoutingError):
    """A collaborator (bridge, settings or history store) failed."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f'{source}: {message}')
        self.source = source
        self.message = message


class InvariantGuard:
    """Decides whether invariant violations fail loudly or degrade to no-ops."""

    def __init__(self, strict: bool = __debug__, logger: Optional[Any] = None) -> None:
        self.strict = bool(strict)
        self.logger = logger
        self.violations = 0

    def fail(self, where: str, message: str, **details: Any) -> None:
        self.violations += 1
        if self.logger is not None:
            try:
                self.logger.log(
                    'invariant_violation',
                    component=where,
                    aspect='errors',
                    severity='error',
                    data={'message': message, **details},
                )
            except Exception:
                pass
        if self.strict:
            raise InvariantViolation(where, message)
