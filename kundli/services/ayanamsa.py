"""Tropical to sidereal conversion."""

from __future__ import annotations

from typing import Dict

from .constants import normalize
from .errors import ConfigurationError

VARIANTS = ("lahiri", "raman", "krishnamurti", "fagan_bradley", "true_chitra")

ALIASES: Dict[str, str] = {
    "kp": "krishnamurti",
    "fagan": "fagan_bradley",
    "true_chitrapaksha": "true_chitra",
    "chitrapaksha": "lahiri",
}


def canonical_variant(name: str) -> str:
    key = (name or "").strip().lower().replace("-", "_").replace(" ", "_")
    key = ALIASES.get(key, key)
    if key not in VARIANTS:
        raise ConfigurationError(f"unknown ayanamsa: {name!r}")
    return key


def to_sidereal(tropical: float, offset: float) -> float:
    return normalize(tropical - offset)


def ayanamsa_value(provider, jd_ut: float, variant: str = "lahiri") -> float:
    return provider.ayanamsa(jd_ut, canonical_variant(variant))


def to_dms(value: float) -> Dict[str, int]:
    sign = -1 if value < 0 else 1
    remaining = abs(value)
    degrees = int(remaining)
    minutes_float = (remaining - degrees) * 60
    minutes = int(minutes_float)
    seconds = int(round((minutes_float - minutes) * 60))
    if seconds == 60:
        seconds = 0
        minutes += 1
    if minutes == 60:
        minutes = 0
        degrees += 1
    return {"sign": sign, "degrees": degrees, "minutes": minutes, "seconds": seconds}
