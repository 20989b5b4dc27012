from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from .constants import SIGN_NAMES, normalize, sign_index_from_lon
from .dignities import sign_lord
from .errors import HOUSE_CUSPS_UNAVAILABLE, ConfigurationError

logger = logging.getLogger(__name__)

HOUSE_CODE_MAP = {
    "placidus": "P",
    "koch": "K",
    "regiomontanus": "R",
    "campanus": "C",
    "porphyry": "O",
    "sripati": "S",
    "equal": "A",
    "whole_sign": "W",
}
SIGN_BASED = {"equal", "whole_sign"}

HOUSE_NAMES = (
    "Lagna", "Dhana", "Sahaja", "Sukha", "Putra", "Shatru",
    "Kalatra", "Mrityu", "Dharma", "Karma", "Labha", "Vyaya",
)

KENDRA = (1, 4, 7, 10)
TRIKONA = (1, 5, 9)
DUSTHANA = (6, 8, 12)


def house_category(number: int) -> str:
    if number in KENDRA:
        return "kendra"
    if number in TRIKONA:
        return "trikona"
    if number in DUSTHANA:
        return "dusthana"
    if number in (2, 11):
        return "panaphara"
    return "apoklima"


def canonical_system(system: str) -> str:
    key = (system or "").strip().lower().replace("-", "_").replace(" ", "_")
    if key == "whole":
        key = "whole_sign"
    if key not in HOUSE_CODE_MAP:
        raise ConfigurationError(f"unknown house system: {system!r}")
    return key


def house_of(lon: float, cusps: List[float]) -> int:
    # shift all longitudes so cusp 1 becomes 0 and walk the sectors
    shift = cusps[0]

    def norm(x):
        return (x - shift) % 360.0

    nlon = norm(lon)
    ncusps = [norm(c) for c in cusps] + [360.0]
    for i in range(12):
        if ncusps[i] <= nlon < ncusps[i + 1]:
            return i + 1
    return 12


def house_from(reference_sign: int, sign: int) -> int:
    """House number of ``sign`` counted from ``reference_sign`` (1..12)."""
    return ((sign - reference_sign) % 12) + 1


@dataclass(frozen=True, slots=True)
class House:
    number: int
    cusp: float
    sign: int
    lord: str
    occupants: Tuple[str, ...]
    category: str
    name: str

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "cusp": round(self.cusp, 6),
            "sign": self.sign,
            "sign_name": SIGN_NAMES[self.sign],
            "lord": self.lord,
            "occupants": list(self.occupants),
            "category": self.category,
            "name": self.name,
        }


@dataclass(frozen=True, slots=True)
class HouseLayout:
    system: str
    ascendant: float
    midheaven: Optional[float]
    houses: Tuple[House, ...]
    placements: Dict[str, int] = field(default_factory=dict)
    degraded: Optional[str] = None

    @property
    def ascendant_sign(self) -> int:
        return sign_index_from_lon(self.ascendant)

    def house(self, number: int) -> House:
        if not 1 <= number <= 12:
            raise ConfigurationError(f"house number out of range: {number}")
        return self.houses[number - 1]

    def lord_of_house(self, number: int) -> str:
        return self.house(number).lord

    def house_of_sign(self, sign: int) -> int:
        return house_from(self.ascendant_sign, sign)

    def to_dict(self) -> dict:
        return {
            "system": self.system,
            "ascendant": round(self.ascendant, 6),
            "ascendant_sign": SIGN_NAMES[self.ascendant_sign],
            "midheaven": None if self.midheaven is None else round(self.midheaven, 6),
            "houses": [h.to_dict() for h in self.houses],
            "placements": dict(self.placements),
            "degraded": self.degraded,
        }


def build_layout(
    system: str,
    ascendant: float,
    midheaven: Optional[float],
    cusps: Optional[List[float]],
    positions: Mapping[str, object],
    degraded: Optional[str] = None,
) -> HouseLayout:
    """Assemble houses from sidereal values.

    ``cusps`` is ignored for sign-based systems, whose membership follows the
    sign distance from the ascendant.
    """

    asc_sign = sign_index_from_lon(ascendant)
    sign_based = system in SIGN_BASED or cusps is None
    if sign_based:
        if system == "equal" and degraded is None:
            cusp_values = [normalize(ascendant + 30.0 * i) for i in range(12)]
        else:
            cusp_values = [((asc_sign + i) % 12) * 30.0 for i in range(12)]
        signs = [(asc_sign + i) % 12 for i in range(12)]
    else:
        cusp_values = [normalize(c) for c in cusps]
        signs = [sign_index_from_lon(c) for c in cusp_values]

    placements: Dict[str, int] = {}
    for body, pos in positions.items():
        if sign_based:
            placements[body] = house_from(asc_sign, pos.sign)
        else:
            placements[body] = house_of(pos.longitude, cusp_values)

    houses = tuple(
        House(
            number=i + 1,
            cusp=cusp_values[i],
            sign=signs[i],
            lord=sign_lord(signs[i]),
            occupants=tuple(b for b in positions if placements[b] == i + 1),
            category=house_category(i + 1),
            name=HOUSE_NAMES[i],
        )
        for i in range(12)
    )
    return HouseLayout(
        system=system,
        ascendant=normalize(ascendant),
        midheaven=midheaven,
        houses=houses,
        placements=placements,
        degraded=degraded,
    )


def resolve_houses(
    provider,
    jd_ut: float,
    lat: float,
    lon: float,
    system: str,
    ayanamsa: float,
    positions: Mapping[str, object],
) -> HouseLayout:
    """Resolve the house layout, falling back to Aries-rising equal houses.

    The fallback never raises; it is reported through ``degraded``.
    """

    system = canonical_system(system)
    cusps = provider.house_cusps(jd_ut, lat, lon, system)
    if cusps is None:
        logger.warning("house_cusps_fallback", extra={"system": system, "lat": lat, "lon": lon})
        return build_layout(system, 0.0, None, None, positions, degraded=HOUSE_CUSPS_UNAVAILABLE)

    ascendant = normalize(cusps.ascendant - ayanamsa)
    midheaven = normalize(cusps.midheaven - ayanamsa)
    sidereal_cusps = [normalize(c - ayanamsa) for c in cusps.cusps]
    return build_layout(system, ascendant, midheaven, sidereal_cusps, positions)
