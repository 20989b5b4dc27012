"""Angle arithmetic for transit aspects.

Pure functions over longitudes and daily speeds; nothing here touches the
ephemeris so the module is unit-testable on its own.
"""

from __future__ import annotations

EXACT_TOLERANCE = 1e-6


def signed_delta(transit_lon: float, natal_lon: float, aspect_angle: float) -> float:
    """Signed distance from exactness, in [-180, 180).

    Positive when the transiting point is past the exact aspect angle measured
    forward from the natal point, negative when it has not reached it yet.
    """

    return ((transit_lon - natal_lon) - aspect_angle + 540.0) % 360.0 - 180.0


def directed_angle(transit_lon: float, natal_lon: float, exact: float) -> float:
    """Return ``exact`` or ``360 - exact``, matching the side the transit is on.

    A trine can be formed 120 degrees ahead of or behind the natal point; the
    applying test needs the one actually in play.
    """

    if exact in (0, 180):
        return float(exact)
    forward = (transit_lon - natal_lon) % 360.0
    return float(exact) if forward <= 180.0 else 360.0 - exact


def is_applying(
    transit_lon: float,
    transit_speed: float,
    natal_lon: float,
    natal_speed: float,
    aspect_angle: float,
) -> bool:
    """Whether the pair is closing in on the exact aspect.

    Parameters
    ----------
    transit_lon, natal_lon
        Longitudes in degrees.
    transit_speed, natal_speed
        Daily motion in degrees; a retrograde transit has a negative speed,
        which reverses the direction of approach. Natal speed is normally 0.
    aspect_angle
        Directed angle of the aspect, see :func:`directed_angle`.
    """

    delta = signed_delta(transit_lon, natal_lon, aspect_angle)
    if abs(delta) < EXACT_TOLERANCE:
        return True

    rate = transit_speed - natal_speed
    if abs(rate) < EXACT_TOLERANCE:
        return False

    return (delta > 0 and rate < 0) or (delta < 0 and rate > 0)


def aspect_phase(transit_lon: float, transit_speed: float, natal_lon: float, exact: float) -> str:
    """``"exact"``, ``"applying"`` or ``"separating"`` for a natal (static) point."""

    angle = directed_angle(transit_lon, natal_lon, exact)
    if abs(signed_delta(transit_lon, natal_lon, angle)) < EXACT_TOLERANCE:
        return "exact"
    return "applying" if is_applying(transit_lon, transit_speed, natal_lon, 0.0, angle) else "separating"


__all__ = ["aspect_phase", "directed_angle", "is_applying", "signed_delta"]
