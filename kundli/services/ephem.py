"""Swiss Ephemeris provider used by every chart computation.

The provider returns *tropical* values only; sidereal conversion happens in
:mod:`kundli.services.ayanamsa` so that the rest of the engine can be driven by
an in-memory fake in tests.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar
from zoneinfo import ZoneInfo

import swisseph as swe

from .constants import BODIES, normalize
from .errors import (
    ConfigurationError,
    DegenerateGeometryError,
    Outcome,
    OutOfRangeError,
    ProviderUnavailable,
    Resolved,
    UnavailableError,
    degraded_from,
)
from .houses import HOUSE_CODE_MAP

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# Engine version for API responses
ENGINE_VERSION = f"swisseph-{getattr(swe, 'version', '2.10')}"

# years -3000 .. +3000 (astronomical numbering)
JD_MIN = 625332.5
JD_MAX = 2816787.5

PLANET_CODES: Dict[str, int] = {
    "Sun": swe.SUN,
    "Moon": swe.MOON,
    "Mars": swe.MARS,
    "Mercury": swe.MERCURY,
    "Jupiter": swe.JUPITER,
    "Venus": swe.VENUS,
    "Saturn": swe.SATURN,
}
NODE_CODES = {"mean": swe.MEAN_NODE, "true": swe.TRUE_NODE}

AYANAMSHA_MAP = {
    "lahiri": swe.SIDM_LAHIRI,
    "raman": swe.SIDM_RAMAN,
    "krishnamurti": swe.SIDM_KRISHNAMURTI,
    "fagan_bradley": swe.SIDM_FAGAN_BRADLEY,
    "true_chitra": swe.SIDM_TRUE_CITRA,
}

# Quadrant systems that have no solution inside the polar circles.
POLAR_SENSITIVE = {"P", "K"}
POLAR_LATITUDE = 66.56


@dataclass(frozen=True, slots=True)
class BodyState:
    longitude: float
    latitude: float
    distance: float
    speed: float


@dataclass(frozen=True, slots=True)
class HouseCusps:
    cusps: Tuple[float, ...]
    ascendant: float
    midheaven: float


@dataclass(frozen=True, slots=True)
class SunEvents:
    sunrise: float
    sunset: float
    next_sunrise: float

    @property
    def day_length(self) -> float:
        return self.sunset - self.sunrise

    @property
    def night_length(self) -> float:
        return self.next_sunrise - self.sunset


def _backend_flag() -> int:
    """Return the Swiss Ephemeris backend flag based on environment configuration."""

    raw_backend = os.getenv("EPHEMERIS_BACKEND")
    backend = raw_backend.strip().lower() if raw_backend else "swieph"
    return swe.FLG_MOSEPH if backend == "moseph" else swe.FLG_SWIEPH


def init_paths(ephe_dir: str | os.PathLike[str] | None) -> None:
    """Set the Swiss Ephemeris file search path when available."""

    if not ephe_dir:
        return

    path = os.fspath(ephe_dir)
    if os.path.isdir(path):
        swe.set_ephe_path(path)


def to_jd_utc(date_str: str, time_str: str, tz: str) -> float:
    """Convert a local date/time to a Julian day in UTC."""

    try:
        zone = ZoneInfo(tz)
    except (KeyError, ValueError) as exc:
        raise ConfigurationError(f"unknown timezone: {tz!r}") from exc
    try:
        dt_local = datetime.fromisoformat(f"{date_str}T{time_str}").replace(tzinfo=zone)
    except ValueError as exc:
        raise ConfigurationError(f"invalid date/time: {date_str} {time_str}") from exc
    dt_utc = dt_local.astimezone(ZoneInfo("UTC"))
    year, month, day = dt_utc.year, dt_utc.month, dt_utc.day
    hour = (
        dt_utc.hour
        + dt_utc.minute / 60
        + dt_utc.second / 3600
        + dt_utc.microsecond / 3_600_000_000
    )
    return swe.julday(year, month, day, hour, swe.GREG_CAL)


def datetime_to_jd(moment: datetime) -> float:
    """Convert a datetime into Julian Day (UT); naive values are taken as UTC."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).timestamp() / 86400.0 + 2440587.5


def jd_to_datetime(jd: float) -> datetime:
    seconds = (jd - 2440587.5) * 86400.0
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def check_range(jd_ut: float) -> None:
    if not JD_MIN <= jd_ut <= JD_MAX:
        raise OutOfRangeError(f"julian day {jd_ut} outside supported range")


class SwissEphemeris:
    """Ephemeris provider backed by ``pyswisseph``.

    ``swe.set_sid_mode`` is process global, so ayanamsa lookups are serialised.
    """

    def __init__(self, node_type: str = "mean", ephe_dir: str | None = None):
        if node_type not in NODE_CODES:
            raise ConfigurationError(f"unknown node type: {node_type!r}")
        self.node_type = node_type
        init_paths(ephe_dir)
        self._lock = threading.Lock()

    def position(self, body: str, jd_ut: float) -> BodyState:
        check_range(jd_ut)
        if body == "Ketu":
            rahu = self.position("Rahu", jd_ut)
            return BodyState(
                longitude=normalize(rahu.longitude + 180.0),
                latitude=-rahu.latitude,
                distance=rahu.distance,
                speed=rahu.speed,
            )
        code = NODE_CODES[self.node_type] if body == "Rahu" else PLANET_CODES.get(body)
        if code is None:
            raise ConfigurationError(f"unknown body: {body!r}")
        flag = _backend_flag() | swe.FLG_SPEED
        try:
            values, _ = swe.calc_ut(jd_ut, code, flag)
        except swe.Error as exc:
            raise ProviderUnavailable(str(exc), body=body) from exc
        lon, lat, dist, lon_speed = values[0], values[1], values[2], values[3]
        return BodyState(longitude=normalize(lon), latitude=lat, distance=dist, speed=lon_speed)

    def house_cusps(self, jd_ut: float, lat: float, lon: float, system: str) -> Optional[HouseCusps]:
        code = HOUSE_CODE_MAP.get(system)
        if code is None:
            raise ConfigurationError(f"unknown house system: {system!r}")
        if code in POLAR_SENSITIVE and abs(lat) >= POLAR_LATITUDE:
            return None
        try:
            check_range(jd_ut)
            cusps, ascmc = swe.houses_ex(jd_ut, lat, lon, code.encode(), _backend_flag())
        except (swe.Error, OutOfRangeError) as exc:
            logger.info("house_cusps_failed", extra={"system": system, "lat": lat, "error": str(exc)})
            return None
        # older bindings return 13 slots with index 0 unused
        values = list(cusps)[-12:]
        return HouseCusps(
            cusps=tuple(c % 360.0 for c in values),
            ascendant=ascmc[0] % 360.0,
            midheaven=ascmc[1] % 360.0,
        )

    def _rise_or_set(self, jd_start: float, rsmi: int, lat: float, lon: float) -> float:
        geopos = (lon, lat, 0.0)
        try:
            result, times = swe.rise_trans(
                jd_start, swe.SUN, rsmi | swe.BIT_DISC_CENTER, geopos, 0.0, 0.0, _backend_flag()
            )
        except swe.Error as exc:
            raise ProviderUnavailable(str(exc), body="Sun") from exc
        if result < 0 or not times or times[0] <= 0:
            raise DegenerateGeometryError(f"sun does not rise or set at latitude {lat}")
        return times[0]

    def sun_events(self, jd_ut: float, lat: float, lon: float) -> SunEvents:
        """Sunrise at or before ``jd_ut``, the following sunset and next sunrise."""

        check_range(jd_ut)
        sunrise = self._rise_or_set(jd_ut - 1.0, swe.CALC_RISE, lat, lon)
        following = self._rise_or_set(sunrise + 0.01, swe.CALC_RISE, lat, lon)
        if following <= jd_ut:
            sunrise = following
        sunset = self._rise_or_set(sunrise, swe.CALC_SET, lat, lon)
        next_sunrise = self._rise_or_set(sunset, swe.CALC_RISE, lat, lon)
        events = SunEvents(sunrise=sunrise, sunset=sunset, next_sunrise=next_sunrise)
        if events.day_length <= 0 or events.night_length <= 0:
            raise DegenerateGeometryError("zero day or night length")
        return events

    def ayanamsa(self, jd_ut: float, variant: str) -> float:
        mode = AYANAMSHA_MAP.get(variant)
        if mode is None:
            raise ConfigurationError(f"unknown ayanamsa: {variant!r}")
        check_range(jd_ut)
        with self._lock:
            swe.set_sid_mode(mode)
            return swe.get_ayanamsa_ut(jd_ut)


@lru_cache(maxsize=4)
def default_provider(node_type: str = "mean") -> SwissEphemeris:
    return SwissEphemeris(node_type=node_type, ephe_dir=os.getenv("EPHEMERIS_DIR"))


def resolve_bodies(provider, jd_ut: float, bodies: Iterable[str] = BODIES) -> Dict[str, Outcome]:
    """Query each body independently; one failing body never aborts the others."""

    out: Dict[str, Outcome] = {}
    for body in bodies:
        try:
            out[body] = Resolved(provider.position(body, jd_ut))
        except UnavailableError as exc:
            logger.warning(
                "ephemeris_body_unavailable",
                extra={"body": body, "jd_ut": jd_ut, "reason": exc.reason, "error": str(exc)},
            )
            out[body] = degraded_from(exc)
    return out


def fan_out(fn: Callable[[T], R], items: Sequence[T], max_workers: int = 4) -> List[R]:
    """Run ``fn`` over ``items`` concurrently and return results in input order."""

    if not items:
        return []
    if max_workers <= 1 or len(items) == 1:
        return [fn(item) for item in items]
    results: List[Optional[R]] = [None] * len(items)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {executor.submit(fn, item): idx for idx, item in enumerate(items)}
        for future in as_completed(future_to_index):
            results[future_to_index[future]] = future.result()
    return results  # type: ignore[return-value]


__all__ = [
    "AYANAMSHA_MAP",
    "BodyState",
    "ENGINE_VERSION",
    "HouseCusps",
    "SunEvents",
    "SwissEphemeris",
    "check_range",
    "datetime_to_jd",
    "default_provider",
    "fan_out",
    "init_paths",
    "jd_to_datetime",
    "resolve_bodies",
    "to_jd_utc",
]
