"""Ashtakavarga: benefic points (bindus) per sign.

Each of the seven classical bodies has its own table (bhinna ashtakavarga):
the seven bodies and the lagna each give one point to the signs that fall in
their benefic houses, counted from where they stand. The sarva ashtakavarga is
the per-sign sum of the seven tables and always totals 337.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from .constants import CLASSICAL_BODIES, SIGN_NAMES
from .errors import MissingBodiesError

LAGNA = "Lagna"

# receiving body -> contributor -> houses counted from the contributor
BENEFIC_HOUSES: Dict[str, Dict[str, Tuple[int, ...]]] = {
    "Sun": {
        "Sun": (1, 2, 4, 7, 8, 9, 10, 11),
        "Moon": (3, 6, 10, 11),
        "Mars": (1, 2, 4, 7, 8, 9, 10, 11),
        "Mercury": (3, 5, 6, 9, 10, 11, 12),
        "Jupiter": (5, 6, 9, 11),
        "Venus": (6, 7, 12),
        "Saturn": (1, 2, 4, 7, 8, 9, 10, 11),
        LAGNA: (3, 4, 6, 10, 11, 12),
    },
    "Moon": {
        "Sun": (3, 6, 7, 8, 10, 11),
        "Moon": (1, 3, 6, 7, 10, 11),
        "Mars": (2, 3, 5, 6, 9, 10, 11),
        "Mercury": (1, 3, 4, 5, 7, 8, 10, 11),
        "Jupiter": (1, 4, 7, 8, 10, 11, 12),
        "Venus": (3, 4, 5, 7, 9, 10, 11),
        "Saturn": (3, 5, 6, 11),
        LAGNA: (3, 6, 10, 11),
    },
    "Mars": {
        "Sun": (3, 5, 6, 10, 11),
        "Moon": (3, 6, 11),
        "Mars": (1, 2, 4, 7, 8, 10, 11),
        "Mercury": (3, 5, 6, 11),
        "Jupiter": (6, 10, 11, 12),
        "Venus": (6, 8, 11, 12),
        "Saturn": (1, 4, 7, 8, 9, 10, 11),
        LAGNA: (1, 3, 6, 10, 11),
    },
    "Mercury": {
        "Sun": (5, 6, 9, 11, 12),
        "Moon": (2, 4, 6, 8, 10, 11),
        "Mars": (1, 2, 4, 7, 8, 9, 10, 11),
        "Mercury": (1, 3, 5, 6, 9, 10, 11, 12),
        "Jupiter": (6, 8, 11, 12),
        "Venus": (1, 2, 3, 4, 5, 8, 9, 11),
        "Saturn": (1, 2, 4, 7, 8, 9, 10, 11),
        LAGNA: (1, 2, 4, 6, 8, 10, 11),
    },
    "Jupiter": {
        "Sun": (1, 2, 3, 4, 7, 8, 9, 10, 11),
        "Moon": (2, 5, 7, 9, 11),
        "Mars": (1, 2, 4, 7, 8, 10, 11),
        "Mercury": (1, 2, 4, 5, 6, 9, 10, 11),
        "Jupiter": (1, 2, 3, 4, 7, 8, 10, 11),
        "Venus": (2, 5, 6, 9, 10, 11),
        "Saturn": (3, 5, 6, 12),
        LAGNA: (1, 2, 4, 5, 6, 7, 9, 10, 11),
    },
    "Venus": {
        "Sun": (8, 11, 12),
        "Moon": (1, 2, 3, 4, 5, 8, 9, 11, 12),
        "Mars": (3, 5, 6, 9, 11, 12),
        "Mercury": (3, 5, 6, 9, 11),
        "Jupiter": (5, 8, 9, 10, 11),
        "Venus": (1, 2, 3, 4, 5, 8, 9, 10, 11),
        "Saturn": (3, 4, 5, 8, 9, 10, 11),
        LAGNA: (1, 2, 3, 4, 5, 8, 9, 11),
    },
    "Saturn": {
        "Sun": (1, 2, 4, 7, 8, 10, 11),
        "Moon": (3, 6, 11),
        "Mars": (3, 5, 6, 10, 11, 12),
        "Mercury": (6, 8, 9, 10, 11, 12),
        "Jupiter": (5, 6, 11, 12),
        "Venus": (6, 11, 12),
        "Saturn": (3, 5, 6, 11),
        LAGNA: (1, 3, 4, 6, 10, 11),
    },
}

TRANSIT_THRESHOLD = 4


def sign_strength(points: int) -> str:
    """Band a sarva sign total."""

    if points >= 30:
        return "strong"
    if points >= 25:
        return "moderate"
    return "weak"


def bhinna(body: str, signs: Mapping[str, int]) -> Tuple[int, ...]:
    """Points per sign for ``body`` given the sign of every contributor."""

    table = BENEFIC_HOUSES[body]
    points = [0] * 12
    for contributor, houses in table.items():
        origin = signs[contributor]
        for house in houses:
            points[(origin + house - 1) % 12] += 1
    return tuple(points)


@dataclass(frozen=True, slots=True)
class Ashtakavarga:
    bhinna: Dict[str, Tuple[int, ...]]
    sarva: Tuple[int, ...]

    def transit_signs(self, body: str) -> List[str]:
        """Signs where ``body`` holds enough points for a favourable transit."""
        return [SIGN_NAMES[i] for i, p in enumerate(self.bhinna[body]) if p >= TRANSIT_THRESHOLD]

    def to_dict(self) -> dict:
        return {
            "bhinna": {b: list(p) for b, p in self.bhinna.items()},
            "totals": {b: sum(p) for b, p in self.bhinna.items()},
            "transit_signs": {b: self.transit_signs(b) for b in self.bhinna},
            "sarva": [
                {"sign": SIGN_NAMES[i], "points": p, "strength": sign_strength(p)}
                for i, p in enumerate(self.sarva)
            ],
            "total": sum(self.sarva),
        }


def ashtakavarga(positions: Mapping[str, object], ascendant_sign: Optional[int]) -> Ashtakavarga:
    """Bhinna and sarva ashtakavarga from the D1 signs.

    Needs all seven classical bodies and the lagna sign.
    """

    missing = [b for b in CLASSICAL_BODIES if b not in positions]
    if ascendant_sign is None:
        missing.append(LAGNA)
    if missing:
        raise MissingBodiesError(missing)
    signs = {b: positions[b].sign for b in CLASSICAL_BODIES}
    signs[LAGNA] = ascendant_sign % 12
    tables = {body: bhinna(body, signs) for body in CLASSICAL_BODIES}
    sarva = tuple(sum(t[i] for t in tables.values()) for i in range(12))
    return Ashtakavarga(bhinna=tables, sarva=sarva)
