from __future__ import annotations

from typing import Tuple

from .errors import ConfigurationError

BODIES: Tuple[str, ...] = ("Sun", "Moon", "Mars", "Mercury", "Jupiter", "Venus", "Saturn", "Rahu", "Ketu")
CLASSICAL_BODIES: Tuple[str, ...] = BODIES[:7]
NODES: Tuple[str, ...] = ("Rahu", "Ketu")

SIGN_NAMES = ["Aries","Taurus","Gemini","Cancer","Leo","Virgo","Libra","Scorpio","Sagittarius","Capricorn","Aquarius","Pisces"]

NAKSHATRAS = [
  "Ashwini","Bharani","Krittika","Rohini","Mrigashira","Ardra","Punarvasu","Pushya","Ashlesha",
  "Magha","Purva Phalguni","Uttara Phalguni","Hasta","Chitra","Swati","Vishakha","Anuradha",
  "Jyeshtha","Mula","Purva Ashadha","Uttara Ashadha","Shravana","Dhanishtha","Shatabhisha",
  "Purva Bhadrapada","Uttara Bhadrapada","Revati"
]

NAKSHATRA_SPAN = 360.0 / 27.0
PADA_SPAN = NAKSHATRA_SPAN / 4.0

MOVABLE, FIXED, DUAL = "movable", "fixed", "dual"


def normalize(lon: float) -> float:
    # 360.0 -> 0.0, negatives wrap forward
    value = lon % 360.0
    return 0.0 if value >= 360.0 else value


def sign_index_from_lon(lon: float) -> int:
    return int(normalize(lon) // 30) % 12

def degree_in_sign(lon: float) -> float:
    return normalize(lon) % 30.0

def is_odd_sign(sign: int) -> bool:
    # Aries (index 0) is the first, odd, sign
    return sign % 2 == 0

def sign_category(sign: int) -> str:
    return (MOVABLE, FIXED, DUAL)[sign % 3]

def angular_distance(a: float, b: float) -> float:
    """Shortest arc between two longitudes, 0..180."""
    return abs((a - b + 180) % 360 - 180)


def nakshatra_index(lon: float) -> int:
    return int(normalize(lon) // NAKSHATRA_SPAN) % 27

def degree_in_nakshatra(lon: float) -> float:
    return normalize(lon) - nakshatra_index(lon) * NAKSHATRA_SPAN

def pada_of(lon: float) -> int:
    return min(int(degree_in_nakshatra(lon) // PADA_SPAN), 3) + 1

def nakshatra_bounds(nakshatra: int, pada: int) -> Tuple[float, float]:
    """Longitude window [start, end) covered by a nakshatra pada."""
    if not 0 <= nakshatra < 27 or not 1 <= pada <= 4:
        raise ConfigurationError(f"invalid nakshatra/pada: {nakshatra}/{pada}")
    start = nakshatra * NAKSHATRA_SPAN + (pada - 1) * PADA_SPAN
    return start, start + PADA_SPAN


def validate_body(body: str) -> str:
    if body not in BODIES:
        raise ConfigurationError(f"unknown body: {body!r}")
    return body


def fmt_deg(lon: float) -> str:
    # 0..360 to "sign 12°34′"
    sidx = sign_index_from_lon(lon)
    within = degree_in_sign(lon)
    deg = int(within)
    minutes_float = (within - deg) * 60
    mins = int(minutes_float)
    secs = int((minutes_float - mins) * 60)
    return f"{SIGN_NAMES[sidx]} {deg:02d}°{mins:02d}′{secs:02d}″"
