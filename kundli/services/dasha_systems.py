"""Descriptors for the four supported dasha systems."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Mapping, Optional, Tuple

from .constants import (
    DUAL,
    FIXED,
    NAKSHATRA_SPAN,
    SIGN_NAMES,
    degree_in_nakshatra,
    degree_in_sign,
    nakshatra_index,
    normalize,
    sign_category,
    sign_index_from_lon,
)
from .dashas import DEFAULT_HORIZON_YEARS, DashaTimeline, PeriodSystem, compute_timeline
from .dignities import sign_lord
from .errors import ConfigurationError, MissingBodiesError
from .houses import house_from

# Vimshottari order and full years per Maha
DASHA_ORDER = ["Ketu", "Venus", "Sun", "Moon", "Mars", "Rahu", "Jupiter", "Saturn", "Mercury"]
YEARS =      [   7,     20,    6,    10,     7,     18,       16,      19,       17]


def _nakshatra_balance(lon: float) -> float:
    return 1.0 - degree_in_nakshatra(lon) / NAKSHATRA_SPAN


def _vimshottari_start(lon: float) -> Tuple[str, float]:
    return DASHA_ORDER[nakshatra_index(lon) % 9], _nakshatra_balance(lon)


VIMSHOTTARI = PeriodSystem(
    name="vimshottari",
    rulers=tuple(DASHA_ORDER),
    weights=dict(zip(DASHA_ORDER, YEARS)),
    starting_rule=_vimshottari_start,
    start_rule_name="nakshatra_index_mod_9",
    max_levels=3,
)


# Ashtottari: (ruler, years, nakshatras in its group), counted from Ardra
ASHTOTTARI_GROUPS: Tuple[Tuple[str, int, int], ...] = (
    ("Sun", 6, 4),
    ("Moon", 15, 3),
    ("Mars", 8, 4),
    ("Mercury", 17, 3),
    ("Saturn", 10, 3),
    ("Jupiter", 19, 3),
    ("Rahu", 12, 4),
    ("Venus", 21, 3),
)
ASHTOTTARI_FIRST_NAKSHATRA = 5  # Ardra


def ashtottari_group(nakshatra: int) -> Tuple[str, int, int]:
    """Return (ruler, first nakshatra of the group, group size)."""

    offset = (nakshatra - ASHTOTTARI_FIRST_NAKSHATRA) % 27
    first = 0
    for ruler, _years, size in ASHTOTTARI_GROUPS:
        if offset < first + size:
            return ruler, (ASHTOTTARI_FIRST_NAKSHATRA + first) % 27, size
        first += size
    raise AssertionError("ashtottari groups must cover 27 nakshatras")


def _ashtottari_start(lon: float) -> Tuple[str, float]:
    ruler, first, size = ashtottari_group(nakshatra_index(lon))
    traversed = normalize(lon - first * NAKSHATRA_SPAN)
    return ruler, 1.0 - traversed / (size * NAKSHATRA_SPAN)


ASHTOTTARI = PeriodSystem(
    name="ashtottari",
    rulers=tuple(r for r, _, _ in ASHTOTTARI_GROUPS),
    weights={r: y for r, y, _ in ASHTOTTARI_GROUPS},
    starting_rule=_ashtottari_start,
    start_rule_name="ardra_groups",
    max_levels=3,
)


YOGINIS: Tuple[Tuple[str, str, int], ...] = (
    ("Mangala", "Moon", 1),
    ("Pingala", "Sun", 2),
    ("Dhanya", "Jupiter", 3),
    ("Bhramari", "Mars", 4),
    ("Bhadrika", "Mercury", 5),
    ("Ulka", "Saturn", 6),
    ("Siddha", "Venus", 7),
    ("Sankata", "Rahu", 8),
)


def yogini_index(nakshatra: int) -> int:
    # (nakshatra number + 3) mod 8, remainder 1 = Mangala, 0 = Sankata
    remainder = (nakshatra + 1 + 3) % 8
    return 7 if remainder == 0 else remainder - 1


def _yogini_start(lon: float) -> Tuple[str, float]:
    return YOGINIS[yogini_index(nakshatra_index(lon))][0], _nakshatra_balance(lon)


YOGINI = PeriodSystem(
    name="yogini",
    rulers=tuple(y for y, _, _ in YOGINIS),
    weights={y: years for y, _, years in YOGINIS},
    starting_rule=_yogini_start,
    start_rule_name="nakshatra_plus_three_mod_8",
    max_levels=2,
    lords={y: lord for y, lord, _ in YOGINIS},
)


def chara_sequence(sign: int) -> List[int]:
    """Movable signs run forward, fixed backward, dual alternate outward."""

    category = sign_category(sign)
    if category == FIXED:
        return [(sign - i) % 12 for i in range(12)]
    if category == DUAL:
        seq = [sign]
        for step in range(1, 7):
            seq.append((sign + step) % 12)
            if step < 6:
                seq.append((sign - step) % 12)
        return seq
    return [(sign + i) % 12 for i in range(12)]


def chara_years(sign: int, lord_signs: Mapping[str, int]) -> int:
    lord = sign_lord(sign)
    lord_sign = lord_signs.get(lord)
    if lord_sign is None:
        return 1
    forward = (lord_sign - sign) % 12
    backward = (sign - lord_sign) % 12
    category = sign_category(sign)
    if category == FIXED:
        distance = backward
    elif category == DUAL:
        distance = min(forward, backward)
    else:
        distance = forward
    return max(1, min(distance + 1, 12))


def chara_system(positions: Mapping[str, object]) -> PeriodSystem:
    """Chara dasha weights depend on where each sign lord sits."""

    lord_signs = {body: pos.sign for body, pos in positions.items()}
    weights = {SIGN_NAMES[s]: chara_years(s, lord_signs) for s in range(12)}

    def start(lon: float) -> Tuple[str, float]:
        return SIGN_NAMES[sign_index_from_lon(lon)], 1.0 - degree_in_sign(lon) / 30.0

    def sequence(name: str) -> List[str]:
        return [SIGN_NAMES[s] for s in chara_sequence(SIGN_NAMES.index(name))]

    return PeriodSystem(
        name="chara",
        rulers=tuple(SIGN_NAMES),
        weights=weights,
        starting_rule=start,
        start_rule_name="ascendant_sign_direction",
        max_levels=2,
        anchor="Ascendant",
        sequence_rule=sequence,
        lords={SIGN_NAMES[s]: sign_lord(s) for s in range(12)},
    )


SYSTEMS = ("vimshottari", "ashtottari", "yogini", "chara")


def ashtottari_applicability(positions: Mapping[str, object], ascendant: Optional[float]) -> Dict[str, object]:
    """Rahu in a kendra or trikona from the lagna lord."""

    if ascendant is None or "Rahu" not in positions:
        return {"applicable": None, "reason": "missing_inputs"}
    lagna_lord = sign_lord(sign_index_from_lon(ascendant))
    lord_pos = positions.get(lagna_lord)
    if lord_pos is None:
        return {"applicable": None, "reason": "missing_inputs"}
    house = house_from(lord_pos.sign, positions["Rahu"].sign)
    return {
        "applicable": house in (1, 4, 5, 7, 9, 10),
        "lagna_lord": lagna_lord,
        "rahu_house_from_lagna_lord": house,
    }


def system_for(name: str, positions: Mapping[str, object]) -> PeriodSystem:
    key = (name or "").strip().lower()
    if key == "vimshottari":
        return VIMSHOTTARI
    if key == "ashtottari":
        return ASHTOTTARI
    if key == "yogini":
        return YOGINI
    if key == "chara":
        return chara_system(positions)
    raise ConfigurationError(f"unknown dasha system: {name!r}")


def compute_dasha(
    name: str,
    positions: Mapping[str, object],
    ascendant: Optional[float],
    birth: datetime,
    now: Optional[datetime] = None,
    levels: Optional[int] = None,
    horizon_years: float = DEFAULT_HORIZON_YEARS,
    clamp_levels: bool = False,
) -> DashaTimeline:
    system = system_for(name, positions)
    if system.anchor == "Ascendant":
        if ascendant is None:
            raise MissingBodiesError(["Ascendant"])
        anchor = ascendant
    else:
        if "Moon" not in positions:
            raise MissingBodiesError(["Moon"])
        anchor = positions["Moon"].longitude
    if levels is not None and clamp_levels:
        levels = min(levels, system.max_levels)
    details: Dict[str, object] = {}
    if system.name == "ashtottari":
        details = ashtottari_applicability(positions, ascendant)
    elif system.name == "chara":
        details = {"sign_years": dict(system.weights)}
    return compute_timeline(
        system,
        anchor,
        birth,
        now=now,
        levels=levels,
        horizon_years=horizon_years,
        details=details,
    )
