"""Divisional charts (vargas).

Each scheme maps a sidereal longitude onto a varga longitude: the sign is the
varga sign and the degree is the position inside the part, scaled to 0..30.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple

from .constants import SIGN_NAMES, degree_in_sign, is_odd_sign, normalize, sign_index_from_lon
from .errors import ConfigurationError

DIVISIONS: Tuple[int, ...] = (1, 2, 3, 4, 7, 9, 10, 12, 16, 20, 24, 27, 30, 40, 45, 60)

VARGA_NAMES: Dict[int, str] = {
    1: "Rasi",
    2: "Hora",
    3: "Drekkana",
    4: "Chaturthamsa",
    7: "Saptamsa",
    9: "Navamsa",
    10: "Dasamsa",
    12: "Dwadasamsa",
    16: "Shodasamsa",
    20: "Vimsamsa",
    24: "Chaturvimsamsa",
    27: "Bhamsa",
    30: "Trimsamsa",
    40: "Khavedamsa",
    45: "Akshavedamsa",
    60: "Shashtiamsa",
}

# (upper bound of the part, varga sign) for odd and even signs
TRIMSAMSA_ODD = ((5.0, 0), (10.0, 10), (18.0, 8), (25.0, 2), (30.0, 6))
TRIMSAMSA_EVEN = ((5.0, 1), (12.0, 5), (20.0, 11), (25.0, 9), (30.0, 7))


def parse_division(value) -> int:
    """Accept ``9``, ``"9"`` or ``"D9"``."""

    text = str(value).strip().upper()
    if text.startswith("D"):
        text = text[1:]
    try:
        division = int(text)
    except ValueError as exc:
        raise ConfigurationError(f"unknown divisional chart: {value!r}") from exc
    if division not in DIVISIONS:
        raise ConfigurationError(f"unknown divisional chart: {value!r}")
    return division


def _hora(sign: int, part: int) -> int:
    if is_odd_sign(sign):
        return 4 if part == 0 else 3
    return 3 if part == 0 else 4


def _by_modality(movable: int, fixed: int, dual: int) -> Callable[[int, int], int]:
    starts = (movable, fixed, dual)
    return lambda sign, part: starts[sign % 3] + part


def _by_element(fire: int, earth: int, air: int, water: int) -> Callable[[int, int], int]:
    starts = (fire, earth, air, water)
    return lambda sign, part: starts[sign % 4] + part


def _odd_even(odd_start: Callable[[int], int], even_start: Callable[[int], int]) -> Callable[[int, int], int]:
    def rule(sign: int, part: int) -> int:
        start = odd_start(sign) if is_odd_sign(sign) else even_start(sign)
        return start + part
    return rule


RULES: Dict[int, Callable[[int, int], int]] = {
    1: lambda sign, part: sign,
    2: _hora,
    3: lambda sign, part: sign + 4 * part,
    4: _odd_even(lambda s: s, lambda s: s + 3),
    7: _odd_even(lambda s: s, lambda s: s + 6),
    9: _by_element(0, 9, 6, 3),
    10: _odd_even(lambda s: s, lambda s: s + 8),
    12: lambda sign, part: sign + part,
    16: _by_modality(0, 4, 8),
    20: _by_modality(0, 8, 4),
    24: _odd_even(lambda s: 4, lambda s: 3),
    27: _by_element(0, 3, 6, 9),
    40: _odd_even(lambda s: 0, lambda s: 6),
    45: _by_modality(0, 4, 8),
    60: lambda sign, part: sign + part // 5,
}


def _trimsamsa(lon: float) -> float:
    sign = sign_index_from_lon(lon)
    deg = degree_in_sign(lon)
    table = TRIMSAMSA_ODD if is_odd_sign(sign) else TRIMSAMSA_EVEN
    lower = 0.0
    for upper, target in table:
        if deg < upper:
            return target * 30.0 + (deg - lower) / (upper - lower) * 30.0
        lower = upper
    upper, target = table[-1]
    return target * 30.0 + 30.0 - 1e-9


def varga_longitude(lon: float, division) -> float:
    division = parse_division(division)
    lon = normalize(lon)
    if division == 30:
        return normalize(_trimsamsa(lon))
    sign = sign_index_from_lon(lon)
    deg = degree_in_sign(lon)
    part_size = 30.0 / division
    part = min(int(deg // part_size), division - 1)
    target = RULES[division](sign, part) % 12
    within = (deg - part * part_size) * division
    return normalize(target * 30.0 + min(within, 30.0 - 1e-9))


def varga_sign(lon: float, division) -> int:
    return sign_index_from_lon(varga_longitude(lon, division))


@dataclass(frozen=True, slots=True)
class VargaPlacement:
    body: str
    longitude: float
    sign: int
    degree_in_sign: float
    vargottama: bool

    def to_dict(self) -> dict:
        return {
            "body": self.body,
            "longitude": round(self.longitude, 6),
            "sign": self.sign,
            "sign_name": SIGN_NAMES[self.sign],
            "degree_in_sign": round(self.degree_in_sign, 6),
            "vargottama": self.vargottama,
        }


@dataclass(frozen=True, slots=True)
class DivisionalChart:
    division: int
    name: str
    ascendant: Optional[VargaPlacement]
    placements: Tuple[VargaPlacement, ...]

    def sign_of(self, body: str) -> Optional[int]:
        for p in self.placements:
            if p.body == body:
                return p.sign
        return None

    def to_dict(self) -> dict:
        return {
            "division": f"D{self.division}",
            "name": self.name,
            "ascendant": self.ascendant.to_dict() if self.ascendant else None,
            "placements": [p.to_dict() for p in self.placements],
        }


def _place(body: str, lon: float, division: int) -> VargaPlacement:
    vlon = varga_longitude(lon, division)
    vsign = sign_index_from_lon(vlon)
    return VargaPlacement(
        body=body,
        longitude=vlon,
        sign=vsign,
        degree_in_sign=degree_in_sign(vlon),
        vargottama=vsign == sign_index_from_lon(lon),
    )


def divisional_chart(positions: Mapping[str, object], ascendant: Optional[float], division) -> DivisionalChart:
    division = parse_division(division)
    placements = tuple(_place(body, pos.longitude, division) for body, pos in positions.items())
    asc = _place("Ascendant", ascendant, division) if ascendant is not None else None
    return DivisionalChart(division=division, name=VARGA_NAMES[division], ascendant=asc, placements=placements)
