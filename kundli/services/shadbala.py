"""Six-fold planetary strength (Shadbala) for the seven classical bodies.

Every component is a pure function so it can be inspected on its own; the
aggregate is :func:`shadbala`. Scores are in virupas, each component capped at
60.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Mapping, Optional

from .constants import CLASSICAL_BODIES, angular_distance, degree_in_sign, is_odd_sign
from .dignities import (
    BENEFICS,
    MALEFICS,
    SPECIAL_ASPECTS,
    are_friends,
    gender,
    in_debilitation_sign,
    in_exaltation_sign,
    owns,
)
from .ephem import jd_to_datetime
from .errors import ConfigurationError, DegenerateGeometryError

logger = logging.getLogger(__name__)

EXALTATION_POINTS: Dict[str, float] = {
    "Sun": 10.0,
    "Moon": 33.0,
    "Mars": 298.0,
    "Mercury": 165.0,
    "Jupiter": 95.0,
    "Venus": 357.0,
    "Saturn": 200.0,
}

DIG_BALA_HOUSE = {"Jupiter": 1, "Mercury": 1, "Moon": 4, "Venus": 4, "Saturn": 7, "Sun": 10, "Mars": 10}

NAISARGIKA = {
    "Sun": 60.0,
    "Moon": 51.43,
    "Venus": 42.86,
    "Jupiter": 34.29,
    "Mercury": 25.71,
    "Mars": 17.14,
    "Saturn": 8.57,
}

AVERAGE_SPEED = {
    "Sun": 0.9856,
    "Moon": 13.176,
    "Mars": 0.524,
    "Mercury": 1.383,
    "Jupiter": 0.083,
    "Venus": 1.2,
    "Saturn": 0.033,
}

REQUIRED = {
    "Sun": 390.0,
    "Moon": 360.0,
    "Mars": 300.0,
    "Mercury": 420.0,
    "Jupiter": 390.0,
    "Venus": 330.0,
    "Saturn": 300.0,
}

WEEKDAY_LORDS = ("Sun", "Moon", "Mars", "Mercury", "Jupiter", "Venus", "Saturn")  # from Sunday

FAVOURABLE_MONTHS = {
    "Sun": (7, 8),
    "Moon": (6, 7),
    "Mars": (3, 4, 10, 11),
    "Mercury": (5, 6, 8, 9),
    "Jupiter": (11, 12, 2, 3),
    "Venus": (4, 5, 9, 10),
    "Saturn": (12, 1, 2),
}

DAY_STRONG = {"Sun", "Jupiter", "Venus"}
NIGHT_STRONG = {"Moon", "Mars", "Saturn"}
PAKSHA_BENEFICS = {"Jupiter", "Venus", "Moon", "Mercury"}
DAY_THIRDS = ("Mercury", "Sun", "Saturn")
NIGHT_THIRDS = ("Moon", "Venus", "Mars")
UTTARAYANA_SIGNS = {9, 10, 11, 0, 1, 2}

DAY_MODELS = ("sunrise", "clock")

# aspect kind -> (benefic multiplier, malefic multiplier)
DRIG_MULTIPLIERS = {
    "conjunction": (1.0, -0.5),
    "opposition": (0.5, -1.0),
    "trine": (1.0, -0.25),
    "square": (-0.25, -0.75),
    "sextile": (0.5, -0.25),
}


def strength_level(ratio: float) -> str:
    if ratio >= 1.5:
        return "very_strong"
    if ratio >= 1.2:
        return "strong"
    if ratio >= 0.8:
        return "moderate"
    if ratio >= 0.5:
        return "weak"
    return "very_weak"


def weekday_lord(day: date) -> str:
    # date.weekday(): Monday == 0
    return WEEKDAY_LORDS[(day.weekday() + 1) % 7]


@dataclass(frozen=True, slots=True)
class TimeContext:
    is_day: bool
    part_of_day: int
    waxing: bool
    weekday_lord: str
    month: int
    year_lord: str
    uttarayana: bool
    day_model: str = "sunrise"

    def to_dict(self) -> dict:
        return {
            "is_day": self.is_day,
            "part_of_day": self.part_of_day,
            "waxing": self.waxing,
            "weekday_lord": self.weekday_lord,
            "month": self.month,
            "year_lord": self.year_lord,
            "uttarayana": self.uttarayana,
            "day_model": self.day_model,
        }


def build_time_context(
    birth_local: datetime,
    sun_lon: float,
    moon_lon: float,
    day_model: str = "sunrise",
    provider=None,
    jd_ut: Optional[float] = None,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
) -> TimeContext:
    """Derive the calendar facts Kala Bala depends on.

    With ``day_model="sunrise"`` the day starts at the real sunrise and the
    provider is required; ``"clock"`` uses a fixed 06:00-18:00 day.
    """

    if day_model not in DAY_MODELS:
        raise ConfigurationError(f"unknown day model: {day_model!r}")

    if day_model == "sunrise":
        if provider is None or jd_ut is None or lat is None or lon is None:
            raise ConfigurationError("sunrise day model needs provider, jd and location")
        events = provider.sun_events(jd_ut, lat, lon)
        if events.day_length <= 0 or events.night_length <= 0:
            raise DegenerateGeometryError("zero day or night length")
        is_day = events.sunrise <= jd_ut < events.sunset
        if is_day:
            fraction = (jd_ut - events.sunrise) / events.day_length
        else:
            fraction = (jd_ut - events.sunset) / events.night_length
        tz = birth_local.tzinfo
        vedic_day = jd_to_datetime(events.sunrise).astimezone(tz).date() if tz else jd_to_datetime(events.sunrise).date()
    else:
        hours = birth_local.hour + birth_local.minute / 60.0 + birth_local.second / 3600.0
        is_day = 6.0 <= hours < 18.0
        fraction = ((hours - 6.0) if is_day else ((hours - 18.0) % 24.0)) / 12.0
        vedic_day = birth_local.date() if hours >= 6.0 else birth_local.date() - timedelta(days=1)

    part = min(max(int(fraction * 3), 0), 2)
    return TimeContext(
        is_day=is_day,
        part_of_day=part,
        waxing=(moon_lon - sun_lon) % 360.0 < 180.0,
        weekday_lord=weekday_lord(vedic_day),
        month=birth_local.month,
        year_lord=weekday_lord(date(birth_local.year, 1, 1)),
        uttarayana=int(sun_lon // 30) % 12 in UTTARAYANA_SIGNS,
        day_model=day_model,
    )


# -- Sthana bala ------------------------------------------------------------

def uchcha_bala(body: str, lon: float) -> float:
    return (180.0 - angular_distance(lon, EXALTATION_POINTS[body])) / 3.0


def saptavarga_bala(body: str, sign: int) -> float:
    score = 10.0
    score += 15.0 if owns(body, sign) else 0.0
    score += 20.0 if in_exaltation_sign(body, sign) else 0.0
    score -= 10.0 if in_debilitation_sign(body, sign) else 0.0
    return max(score, 0.0)


def oja_yugma_bala(body: str, sign: int) -> float:
    kind = gender(body)
    if kind == "neutral":
        return 7.5
    if kind == "male":
        return 7.5 if is_odd_sign(sign) else 0.0
    return 7.5 if not is_odd_sign(sign) else 0.0


def kendradi_bala(house: int) -> float:
    if house in (1, 4, 7, 10):
        return 15.0
    if house in (2, 5, 8, 11):
        return 7.5
    return 3.75


def drekkana_bala(body: str, lon: float) -> float:
    decanate = min(int(degree_in_sign(lon) // 10), 2)
    table = {
        "male": (7.5, 3.75, 0.0),
        "female": (0.0, 3.75, 7.5),
        "neutral": (3.75, 7.5, 3.75),
    }[gender(body)]
    return table[decanate]


def sthana_bala(body: str, lon: float, sign: int, house: int) -> float:
    total = (
        uchcha_bala(body, lon)
        + saptavarga_bala(body, sign)
        + oja_yugma_bala(body, sign)
        + kendradi_bala(house)
        + drekkana_bala(body, lon)
    )
    return min(60.0, total)


# -- Dig bala ---------------------------------------------------------------

def dig_bala(body: str, house: int) -> float:
    diff = abs(house - DIG_BALA_HOUSE[body]) % 12
    distance = min(diff, 12 - diff)
    return 60.0 - 10.0 * distance


# -- Kala bala --------------------------------------------------------------

def kala_components(body: str, ctx: TimeContext) -> Dict[str, float]:
    if body == "Mercury":
        nathonnatha = 15.0
    elif body in DAY_STRONG:
        nathonnatha = 15.0 if ctx.is_day else 0.0
    else:
        nathonnatha = 15.0 if not ctx.is_day else 0.0

    if body in PAKSHA_BENEFICS:
        paksha = 10.0 if ctx.waxing else 5.0
    else:
        paksha = 5.0 if ctx.waxing else 10.0

    thirds = DAY_THIRDS if ctx.is_day else NIGHT_THIRDS
    tribhaga = 10.0 if body == "Jupiter" or thirds[ctx.part_of_day] == body else 0.0

    vara = 10.0 if ctx.weekday_lord == body else 2.5
    masa = 15.0 if ctx.month in FAVOURABLE_MONTHS[body] else 7.5

    if ctx.year_lord == body:
        varsha = 15.0
    elif are_friends(ctx.year_lord, body):
        varsha = 10.0
    else:
        varsha = 5.0

    if body in ("Sun", "Mars", "Jupiter"):
        ayana = 15.0 if ctx.uttarayana else 5.0
    elif body in ("Moon", "Venus", "Saturn"):
        ayana = 5.0 if ctx.uttarayana else 15.0
    else:
        ayana = 10.0

    return {
        "nathonnatha": nathonnatha,
        "paksha": paksha,
        "tribhaga": tribhaga,
        "vara": vara,
        "masa": masa,
        "varsha": varsha,
        "ayana": ayana,
    }


# -- Chesta, naisargika, drig -----------------------------------------------

def chesta_bala(body: str, speed: Optional[float], is_retrograde: bool = False) -> float:
    if body in ("Sun", "Moon"):
        return 30.0
    if is_retrograde:
        return 60.0
    if speed is None:
        return 30.0
    ratio = abs(speed) / AVERAGE_SPEED[body]
    if ratio < 0.1:
        return 55.0
    if ratio > 1.0:
        return min(45.0, 30.0 + 5.0 * ratio)
    return min(55.0, 30.0 + 10.0 / ratio)


def naisargika_bala(body: str) -> float:
    return NAISARGIKA[body]


def _orb_aspect(distance: float):
    if distance < 10:
        return "conjunction", 15.0 - distance
    if abs(distance - 60) < 6:
        return "sextile", 7.5 - abs(distance - 60)
    if abs(distance - 90) < 8:
        return "square", 10.0 - abs(distance - 90)
    if abs(distance - 120) < 8:
        return "trine", 15.0 - abs(distance - 120)
    if abs(distance - 180) < 10:
        return "opposition", 15.0 - abs(distance - 180)
    return None


def drig_bala(body: str, positions: Mapping[str, object]) -> float:
    target = positions[body]
    total = 0.0
    for other, pos in positions.items():
        if other == body:
            continue
        benefic = other in BENEFICS
        malefic = other in MALEFICS
        aspect = _orb_aspect(angular_distance(pos.longitude, target.longitude))
        if aspect is not None and (benefic or malefic):
            kind, strength = aspect
            good, bad = DRIG_MULTIPLIERS[kind]
            total += strength * (good if benefic else bad)

        diff = (target.sign - pos.sign) % 12
        if diff in SPECIAL_ASPECTS.get(other, ()):
            special = 7.5 if other in ("Rahu", "Ketu") else 10.0
            total += special if benefic else -special * 0.5
    return max(min(total + 30.0, 60.0), 0.0)


@dataclass(frozen=True, slots=True)
class StrengthScore:
    body: str
    sthana: float
    dig: float
    kala: float
    chesta: float
    naisargika: float
    drig: float
    required: float
    kala_parts: Dict[str, float] = field(default_factory=dict)

    @property
    def total(self) -> float:
        return self.sthana + self.dig + self.kala + self.chesta + self.naisargika + self.drig

    @property
    def ratio(self) -> float:
        return self.total / self.required

    @property
    def level(self) -> str:
        return strength_level(self.ratio)

    def to_dict(self) -> dict:
        return {
            "body": self.body,
            "sthana": round(self.sthana, 4),
            "dig": round(self.dig, 4),
            "kala": round(self.kala, 4),
            "chesta": round(self.chesta, 4),
            "naisargika": round(self.naisargika, 4),
            "drig": round(self.drig, 4),
            "total": round(self.total, 4),
            "required": self.required,
            "ratio": round(self.ratio, 4),
            "level": self.level,
            "kala_parts": dict(self.kala_parts),
        }


def body_strength(
    body: str,
    positions: Mapping[str, object],
    placements: Mapping[str, int],
    ctx: TimeContext,
) -> StrengthScore:
    if body not in CLASSICAL_BODIES:
        raise ConfigurationError(f"shadbala is defined for the seven classical bodies, not {body!r}")
    pos = positions[body]
    house = placements[body]
    parts = kala_components(body, ctx)
    return StrengthScore(
        body=body,
        sthana=sthana_bala(body, pos.longitude, pos.sign, house),
        dig=dig_bala(body, house),
        kala=min(60.0, sum(parts.values())),
        chesta=chesta_bala(body, pos.speed, pos.is_retrograde),
        naisargika=naisargika_bala(body),
        drig=drig_bala(body, positions),
        required=REQUIRED[body],
        kala_parts=parts,
    )


def shadbala(
    positions: Mapping[str, object],
    placements: Mapping[str, int],
    ctx: TimeContext,
) -> Dict[str, StrengthScore]:
    """Strength table for every classical body present in ``positions``."""

    return {
        body: body_strength(body, positions, placements, ctx)
        for body in CLASSICAL_BODIES
        if body in positions and body in placements
    }
