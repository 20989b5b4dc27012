from __future__ import annotations

from typing import Dict, Optional, Tuple

from .constants import BODIES, SIGN_NAMES, degree_in_sign, sign_index_from_lon

EXALTED = "exalted"
DEBILITATED = "debilitated"
OWN_SIGN = "own_sign"
DIRECT = "direct"
RETROGRADE = "retrograde"
NEUTRAL = "neutral"

DIGNITY_STATUSES = (EXALTED, DEBILITATED, OWN_SIGN, DIRECT, RETROGRADE, NEUTRAL)

DEFAULT_EXALTATION_ORB = 5.0

# sign index, canonical degree within the sign
EXALT: Dict[str, Tuple[int, float]] = {
    "Sun": (0, 10.0),
    "Moon": (1, 3.0),
    "Mars": (9, 28.0),
    "Mercury": (5, 15.0),
    "Jupiter": (3, 5.0),
    "Venus": (11, 27.0),
    "Saturn": (6, 20.0),
    "Rahu": (1, 20.0),
    "Ketu": (7, 20.0),
}
DEBILITATION: Dict[str, int] = {
    "Sun": 6,
    "Moon": 7,
    "Mars": 3,
    "Mercury": 11,
    "Jupiter": 9,
    "Venus": 5,
    "Saturn": 0,
    "Rahu": 7,
    "Ketu": 1,
}
OWN_SIGNS: Dict[str, Tuple[int, ...]] = {
    "Sun": (4,),
    "Moon": (3,),
    "Mars": (0, 7),
    "Mercury": (2, 5),
    "Jupiter": (8, 11),
    "Venus": (1, 6),
    "Saturn": (9, 10),
    "Rahu": (10,),
    "Ketu": (7,),
}

# first owner in canonical body order, so Scorpio -> Mars and Aquarius -> Saturn
RULERS: Dict[int, str] = {}
for _body in BODIES:
    for _sign in OWN_SIGNS[_body]:
        RULERS.setdefault(_sign, _body)

NEVER_RETROGRADE = frozenset({"Sun", "Moon"})

BENEFICS = frozenset({"Jupiter", "Venus"})
MALEFICS = frozenset({"Sun", "Mars", "Saturn", "Rahu", "Ketu"})
NATURAL_BENEFICS = frozenset({"Jupiter", "Venus", "Mercury"})

MALE = frozenset({"Sun", "Mars", "Jupiter"})
FEMALE = frozenset({"Moon", "Venus"})

FRIENDS: Dict[str, frozenset] = {
    "Sun": frozenset({"Moon", "Mars", "Jupiter"}),
    "Moon": frozenset({"Sun", "Mercury"}),
    "Mars": frozenset({"Sun", "Moon", "Jupiter"}),
    "Mercury": frozenset({"Sun", "Venus"}),
    "Jupiter": frozenset({"Sun", "Moon", "Mars"}),
    "Venus": frozenset({"Mercury", "Saturn"}),
    "Saturn": frozenset({"Mercury", "Venus"}),
}

# degrees from the Sun inside which a body is combust
COMBUSTION_ORB: Dict[str, float] = {
    "Moon": 12.0,
    "Mars": 17.0,
    "Mercury": 14.0,
    "Jupiter": 11.0,
    "Venus": 10.0,
    "Saturn": 15.0,
}
COMBUSTION_ORB_RETROGRADE = {"Mercury": 12.0, "Venus": 8.0}

# graha drishti: forward sign distances (0-based) each body casts an aspect on
SPECIAL_ASPECTS: Dict[str, Tuple[int, ...]] = {
    "Mars": (3, 7),
    "Jupiter": (4, 8),
    "Saturn": (2, 9),
    "Rahu": (4, 8),
    "Ketu": (4, 8),
}


def sign_lord(sign: int) -> str:
    return RULERS[sign % 12]


def gender(body: str) -> str:
    if body in MALE:
        return "male"
    if body in FEMALE:
        return "female"
    return "neutral"


def are_friends(a: str, b: str) -> bool:
    return b in FRIENDS.get(a, ())


def owns(body: str, sign: int) -> bool:
    return sign % 12 in OWN_SIGNS.get(body, ())


def in_exaltation_sign(body: str, sign: int) -> bool:
    return EXALT[body][0] == sign % 12


def in_debilitation_sign(body: str, sign: int) -> bool:
    return DEBILITATION[body] == sign % 12


def within_exaltation_orb(body: str, lon: float, orb: float = DEFAULT_EXALTATION_ORB) -> bool:
    sign, canonical = EXALT[body]
    if sign_index_from_lon(lon) != sign:
        return False
    diff = abs(degree_in_sign(lon) - canonical)
    # the window wraps across the 0/30 degree edge of the sign
    return min(diff, 30.0 - diff) <= orb


def sign_dignity(body: str, lon: float, orb: float = DEFAULT_EXALTATION_ORB) -> Optional[str]:
    """Dignity from placement alone, ignoring motion."""
    sign = sign_index_from_lon(lon)
    if within_exaltation_orb(body, lon, orb):
        return EXALTED
    if in_debilitation_sign(body, sign):
        return DEBILITATED
    if owns(body, sign):
        return OWN_SIGN
    return None


def resolve_dignity(body: str, lon: float, speed: Optional[float], orb: float = DEFAULT_EXALTATION_ORB) -> str:
    """Resolve one status with precedence retrograde > exalted > debilitated > own sign > direct."""

    if speed is not None and speed < 0 and body not in NEVER_RETROGRADE:
        return RETROGRADE
    placed = sign_dignity(body, lon, orb)
    if placed is not None:
        return placed
    if speed is None:
        return NEUTRAL
    return DIRECT


def aspects_sign(body: str, from_sign: int, to_sign: int) -> bool:
    """Whether ``body`` in ``from_sign`` casts a full aspect on ``to_sign``."""

    diff = (to_sign - from_sign) % 12
    if diff == 6:
        return True
    return diff in SPECIAL_ASPECTS.get(body, ())


def is_combust(body: str, lon: float, sun_lon: float, retrograde: bool = False) -> bool:
    if body == "Sun" or body not in COMBUSTION_ORB:
        return False
    orb = COMBUSTION_ORB_RETROGRADE.get(body, COMBUSTION_ORB[body]) if retrograde else COMBUSTION_ORB[body]
    return abs((lon - sun_lon + 180) % 360 - 180) <= orb
