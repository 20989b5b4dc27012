from __future__ import annotations

from typing import Mapping, Optional, Tuple

MAJOR = {
    "conjunction": 0,
    "opposition": 180,
    "square": 90,
    "trine": 120,
    "sextile": 60,
    "quincunx": 150,
}

ASPECT_ALIASES = {"inconjunct": "quincunx"}

ASPECT_NATURE = {
    "trine": "harmonious",
    "sextile": "harmonious",
    "square": "challenging",
    "opposition": "challenging",
    "conjunction": "neutral",
    "quincunx": "adjusting",
}


def canonical_aspect(name: str) -> str:
    return ASPECT_ALIASES.get(name, name)


def aspect_angle(name: str) -> float | None:
    canonical = canonical_aspect(name)
    return MAJOR.get(canonical)


def _angle_diff(a: float, b: float) -> float:
    """Return the minimal angular distance between two longitudes."""

    return abs((a - b + 180) % 360 - 180)


def closest_aspect(lon_a: float, lon_b: float, orbs: Mapping[str, float]) -> Optional[Tuple[str, float]]:
    """Tightest aspect between two longitudes among ``orbs`` (name -> max orb).

    Ties keep the first aspect listed in ``orbs``.
    """

    d = _angle_diff(lon_a, lon_b)
    best: Optional[Tuple[str, float]] = None
    for name, limit in orbs.items():
        exact = aspect_angle(name)
        if exact is None:
            continue
        orb = abs(d - exact)
        if orb <= limit and (best is None or orb < best[1]):
            best = (canonical_aspect(name), orb)
    return best

