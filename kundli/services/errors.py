"""Error taxonomy and the resolved/degraded outcome type.

Recoverable failures (a body the ephemeris cannot resolve, an instant outside
the ephemeris range, sunrise-less polar days) are turned into ``Degraded``
values at feature boundaries so a single failed feature never blanks a chart.
Configuration mistakes are raised and left to propagate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROVIDER_UNAVAILABLE = "provider_unavailable"
OUT_OF_RANGE = "out_of_range"
DEGENERATE_GEOMETRY = "degenerate_geometry"
HOUSE_CUSPS_UNAVAILABLE = "house_cusps_unavailable"
MISSING_BODIES = "missing_bodies"

DEGRADED_REASONS = (
    PROVIDER_UNAVAILABLE,
    OUT_OF_RANGE,
    DEGENERATE_GEOMETRY,
    HOUSE_CUSPS_UNAVAILABLE,
    MISSING_BODIES,
)


class KundliError(Exception):
    """Base class for every error raised by the computation core."""


class ConfigurationError(KundliError, ValueError):
    """Unknown ayanamsa, house system, body, division or an invalid setting."""


class UnavailableError(KundliError):
    reason = PROVIDER_UNAVAILABLE


class ProviderUnavailable(UnavailableError):
    """The ephemeris provider could not resolve a value."""

    def __init__(self, message: str, body: Optional[str] = None):
        super().__init__(message)
        self.body = body


class OutOfRangeError(UnavailableError):
    """The requested instant is outside the provider's supported range."""

    reason = OUT_OF_RANGE


class MissingBodiesError(UnavailableError):
    """A computation needs a body the provider could not resolve."""

    reason = MISSING_BODIES

    def __init__(self, bodies):
        self.bodies = tuple(bodies)
        super().__init__("missing bodies: " + ", ".join(self.bodies))


class DegenerateGeometryError(KundliError):
    """Sunrise/sunset based quantities are undefined for this place and day."""

    reason = DEGENERATE_GEOMETRY


@dataclass(frozen=True, slots=True)
class Resolved(Generic[T]):
    """A computed value. ``notes`` marks one computed from fallback inputs."""

    value: T
    notes: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict:
        value = self.value
        if hasattr(value, "to_dict"):
            value = value.to_dict()
        data = {"status": "resolved", "value": value}
        if self.notes:
            data["notes"] = list(self.notes)
        return data


@dataclass(frozen=True, slots=True)
class Degraded:
    reason: str
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def value(self) -> None:
        return None

    def to_dict(self) -> dict:
        return {"status": "unavailable", "reason": self.reason, "detail": self.detail}


Outcome = Union[Resolved[T], Degraded]


def degraded_from(exc: Exception) -> Degraded:
    """Map a recoverable exception onto its degraded reason."""

    reason = getattr(exc, "reason", PROVIDER_UNAVAILABLE)
    return Degraded(reason=reason, detail=str(exc) or None)


def attempt(feature: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome:
    """Run ``fn`` and wrap the value, degrading recoverable failures.

    ``ConfigurationError`` and programming errors are not caught.
    """

    try:
        return Resolved(fn(*args, **kwargs))
    except (UnavailableError, DegenerateGeometryError) as exc:
        logger.warning(
            "chart_feature_degraded",
            extra={"feature": feature, "reason": getattr(exc, "reason", None), "detail": str(exc)},
        )
        return degraded_from(exc)


def unwrap(outcome: Outcome, default: Any = None) -> Any:
    return outcome.value if outcome.ok else default


__all__ = [
    "ConfigurationError",
    "DEGENERATE_GEOMETRY",
    "DEGRADED_REASONS",
    "Degraded",
    "DegenerateGeometryError",
    "HOUSE_CUSPS_UNAVAILABLE",
    "KundliError",
    "MISSING_BODIES",
    "MissingBodiesError",
    "OUT_OF_RANGE",
    "Outcome",
    "OutOfRangeError",
    "PROVIDER_UNAVAILABLE",
    "ProviderUnavailable",
    "Resolved",
    "UnavailableError",
    "attempt",
    "degraded_from",
    "unwrap",
]
