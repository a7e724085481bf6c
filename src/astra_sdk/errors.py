"""Common SDK error hierarchy used across control/data planes."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

if TYPE_CHECKING:
    from astra_sdk.domain.types import CapabilityKind


class AstraError(RuntimeError):
    """Base class for all SDK-level runtime errors."""


class IllegalArgument(AstraError, ValueError):
    """Raised by builder setters when a value is empty or blank."""

    def __init__(self, field: str, detail: Optional[str] = None) -> None:
        self.field = field
        self.detail = detail
        message = f"Parameter '{field}' should not be null nor empty"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ConfigurationError(AstraError):
    """Raised when explicit configuration points at something that does not exist."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[Path | str] = None,
        section: Optional[str] = None,
        field: Optional[str] = None,
    ) -> None:
        self.path = Path(path) if path is not None else None
        self.section = section
        self.field = field
        super().__init__(message)


class ConnectionFailure(AstraError):
    """Raised when a remote service rejects credentials or cannot be reached."""

    def __init__(self, service: str, detail: Optional[str] = None, *, status: Optional[int] = None) -> None:
        self.service = service
        self.status = status
        self.detail = detail
        message = f"Cannot connect to {service}"
        if status is not None:
            message = f"{message} (HTTP {status})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CapabilityUnavailable(AstraError):
    """Raised when an accessor is used for a capability that was not activated at build time.

    A single instance may aggregate several capabilities (see ``AstraClient.require_all``);
    ``reasons`` maps every unavailable kind to its missing field names.
    """

    def __init__(
        self,
        kind: "CapabilityKind",
        missing: Sequence[str] = (),
        cause: Optional[BaseException] = None,
        *,
        others: Iterable[tuple["CapabilityKind", Sequence[str]]] = (),
    ) -> None:
        self.kind = kind
        self.missing = tuple(missing)
        self.cause = cause
        self.reasons = {kind: self.missing}
        for k, m in others:
            self.reasons[k] = tuple(m)
        super().__init__(self._render())

    def _render(self) -> str:
        parts = []
        for kind, missing in self.reasons.items():
            line = f"{kind.label} is not available"
            if missing:
                line = f"{line}, missing: {', '.join(missing)}"
            parts.append(line)
        message = "; ".join(parts)
        if self.cause is not None:
            message = f"{message} (cause: {self.cause})"
        return message


__all__ = [
    "AstraError",
    "IllegalArgument",
    "ConfigurationError",
    "ConnectionFailure",
    "CapabilityUnavailable",
]
