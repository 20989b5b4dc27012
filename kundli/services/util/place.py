"""Normalisation of birth place payloads."""

from typing import Any, Dict, Optional, Tuple

from timezonefinder import TimezoneFinder

from ..errors import ConfigurationError

_TF: Optional[TimezoneFinder] = None


def _finder() -> TimezoneFinder:
    global _TF
    if _TF is None:
        _TF = TimezoneFinder()
    return _TF


def clamp_lat_lon(lat: float, lon: float) -> Tuple[float, float]:
    """Clamp latitude/longitude to safe ranges."""

    lat = max(min(lat, 89.9), -89.9)
    lon = ((lon + 180.0) % 360.0) - 180.0  # wrap to [-180, 180)
    return lat, lon


def infer_tz(lat: float, lon: float) -> Optional[str]:
    """IANA timezone name for a coordinate pair, ``None`` over open sea."""

    return _finder().timezone_at(lng=lon, lat=lat)


def normalize_place(place: Optional[Dict[str, Any]]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Validate a place payload and fill in the timezone when it is missing.

    Returns the effective place and metadata flags describing what was inferred.
    """

    if not place or place.get("lat") is None or place.get("lon") is None:
        raise ConfigurationError("birth place needs lat and lon")

    flags: Dict[str, Any] = {"tz_inferred": False}
    lat, lon = clamp_lat_lon(float(place["lat"]), float(place["lon"]))
    tz = place.get("tz")
    if not tz:
        tz = infer_tz(lat, lon)
        if not tz:
            raise ConfigurationError(f"cannot infer timezone for {lat:.4f}, {lon:.4f}")
        flags["tz_inferred"] = True

    eff_place = {"lat": lat, "lon": lon, "tz": tz}
    label = place.get("query") or place.get("label")
    if label:
        eff_place["query"] = label
    return eff_place, flags
