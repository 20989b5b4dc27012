"""Transit engine: aspects of the slow bodies to the natal chart, sign
windows, Sade Sati and a sampled ingress/station timeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .aspects import ASPECT_NATURE, aspect_angle, closest_aspect
from .ayanamsa import ayanamsa_value, to_sidereal
from .constants import NODES, SIGN_NAMES, degree_in_sign, sign_index_from_lon
from .ephem import datetime_to_jd, fan_out, jd_to_datetime, resolve_bodies
from .errors import ConfigurationError, MissingBodiesError, UnavailableError
from .houses import house_from
from .positions import resolve_positions
from .transit_math import aspect_phase

logger = logging.getLogger(__name__)

SLOW_BODIES = ("Saturn", "Jupiter", "Mars", "Rahu", "Ketu")

TRANSIT_ORBS = {
    "conjunction": 10.0,
    "opposition": 10.0,
    "trine": 8.0,
    "square": 8.0,
    "sextile": 6.0,
}

# average days a body spends in one sign
SIGN_DAYS = {"Jupiter": 365.0, "Saturn": 912.0, "Rahu": 547.0, "Ketu": 547.0, "Mars": 45.0}
DEFAULT_SIGN_DAYS = 30.0

SADE_SATI_PHASES = {12: "rising", 1: "peak", 2: "setting"}

BISECT_PRECISION_DAYS = 1.0 / 24.0


def transit_strength(orb: float) -> str:
    if orb < 2.0:
        return "strong"
    if orb < 5.0:
        return "moderate"
    return "weak"


@dataclass(frozen=True, slots=True)
class TransitAspect:
    transit_body: str
    natal_body: str
    aspect: str
    orb: float
    applying: bool
    strength: str

    def to_dict(self) -> dict:
        return {
            "transit_body": self.transit_body,
            "natal_body": self.natal_body,
            "aspect": self.aspect,
            "nature": ASPECT_NATURE.get(self.aspect),
            "orb": round(self.orb, 4),
            "applying": self.applying,
            "strength": self.strength,
        }


@dataclass(frozen=True, slots=True)
class SignWindow:
    body: str
    sign: int
    start: datetime
    end: datetime
    house_from_moon: Optional[int]

    def to_dict(self) -> dict:
        return {
            "body": self.body,
            "sign": SIGN_NAMES[self.sign],
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "house_from_moon": self.house_from_moon,
            "estimated": True,
        }


@dataclass(frozen=True, slots=True)
class SadeSati:
    active: bool
    phase: Optional[str] = None
    phase_start: Optional[datetime] = None
    phase_end: Optional[datetime] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def to_dict(self) -> dict:
        def iso(value):
            return value.isoformat() if value else None

        return {
            "active": self.active,
            "phase": self.phase,
            "phase_start": iso(self.phase_start),
            "phase_end": iso(self.phase_end),
            "start": iso(self.start),
            "end": iso(self.end),
        }


@dataclass(frozen=True, slots=True)
class TransitReport:
    at: datetime
    positions: Mapping[str, object]
    aspects: Tuple[TransitAspect, ...]
    windows: Tuple[SignWindow, ...]
    sade_sati: SadeSati
    unavailable: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "at": self.at.isoformat(),
            "positions": {b: p.to_dict() for b, p in self.positions.items()},
            "aspects": [a.to_dict() for a in self.aspects],
            "windows": [w.to_dict() for w in self.windows],
            "sade_sati": self.sade_sati.to_dict(),
            "unavailable": list(self.unavailable),
        }


def find_transit_aspects(
    transits: Mapping[str, object],
    natal: Mapping[str, object],
    bodies: Iterable[str] = SLOW_BODIES,
    orbs: Mapping[str, float] = TRANSIT_ORBS,
) -> List[TransitAspect]:
    """Tightest aspect per (transiting, natal) pair."""

    out: List[TransitAspect] = []
    for t_body in bodies:
        t = transits.get(t_body)
        if t is None:
            continue
        for n_body, n in natal.items():
            hit = closest_aspect(t.longitude, n.longitude, orbs)
            if hit is None:
                continue
            name, orb = hit
            phase = aspect_phase(t.longitude, t.speed or 0.0, n.longitude, aspect_angle(name))
            applying = phase != "separating"
            out.append(TransitAspect(t_body, n_body, name, orb, applying, transit_strength(orb)))
    return sorted(out, key=lambda a: (a.orb, a.transit_body, a.natal_body))


def _traversed(body: str, lon: float) -> float:
    # nodes move backwards through a sign
    deg = degree_in_sign(lon)
    return 30.0 - deg if body in NODES else deg


def sign_window(body: str, lon: float, at: datetime, moon_sign: Optional[int] = None) -> SignWindow:
    days = SIGN_DAYS.get(body, DEFAULT_SIGN_DAYS)
    start = at - timedelta(days=days * _traversed(body, lon) / 30.0)
    sign = sign_index_from_lon(lon)
    return SignWindow(
        body=body,
        sign=sign,
        start=start,
        end=start + timedelta(days=days),
        house_from_moon=None if moon_sign is None else house_from(moon_sign, sign),
    )


def sade_sati(saturn_lon: float, moon_sign: int, at: datetime) -> SadeSati:
    house = house_from(moon_sign, sign_index_from_lon(saturn_lon))
    phase = SADE_SATI_PHASES.get(house)
    if phase is None:
        return SadeSati(active=False)
    days = SIGN_DAYS["Saturn"]
    phase_start = at - timedelta(days=days * degree_in_sign(saturn_lon) / 30.0)
    phase_index = ("rising", "peak", "setting").index(phase)
    start = phase_start - timedelta(days=days * phase_index)
    return SadeSati(
        active=True,
        phase=phase,
        phase_start=phase_start,
        phase_end=phase_start + timedelta(days=days),
        start=start,
        end=start + timedelta(days=3 * days),
    )


def compute_transits(
    provider,
    natal: Mapping[str, object],
    at: datetime,
    ayanamsa: str = "lahiri",
    bodies: Iterable[str] = SLOW_BODIES,
) -> TransitReport:
    if "Moon" not in natal:
        raise MissingBodiesError(["Moon"])
    bodies = tuple(bodies)
    jd = datetime_to_jd(at)
    offset = ayanamsa_value(provider, jd, ayanamsa)
    current, missing = resolve_positions(provider, jd, offset, bodies)
    moon_sign = natal["Moon"].sign
    windows = tuple(sign_window(b, p.longitude, at, moon_sign) for b, p in current.items())
    sati = sade_sati(current["Saturn"].longitude, moon_sign, at) if "Saturn" in current else SadeSati(active=False)
    return TransitReport(
        at=at,
        positions=current,
        aspects=tuple(find_transit_aspects(current, natal, bodies)),
        windows=windows,
        sade_sati=sati,
        unavailable=tuple(missing),
    )


# -- timeline ----------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TransitEvent:
    kind: str
    body: str
    jd: float
    detail: Dict[str, object] = field(default_factory=dict)

    @property
    def at(self) -> datetime:
        return jd_to_datetime(self.jd)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "body": self.body, "at": self.at.isoformat(), **self.detail}


class _Sampler:
    def __init__(self, provider, ayanamsa: str, bodies: Tuple[str, ...]):
        self.provider = provider
        self.ayanamsa = ayanamsa
        self.bodies = bodies

    def __call__(self, jd: float) -> Dict[str, Tuple[float, float]]:
        offset = ayanamsa_value(self.provider, jd, self.ayanamsa)
        out = {}
        for body, outcome in resolve_bodies(self.provider, jd, self.bodies).items():
            if outcome.ok:
                out[body] = (to_sidereal(outcome.value.longitude, offset), outcome.value.speed)
        return out

    def state(self, body: str, jd: float) -> Optional[Tuple[float, float]]:
        try:
            offset = ayanamsa_value(self.provider, jd, self.ayanamsa)
            pos = self.provider.position(body, jd)
        except UnavailableError:
            return None
        return to_sidereal(pos.longitude, offset), pos.speed


def _bisect(lo: float, hi: float, changed) -> float:
    """Narrow [lo, hi] to the moment ``changed(jd)`` flips to True."""

    while hi - lo > BISECT_PRECISION_DAYS:
        mid = (lo + hi) / 2.0
        if changed(mid):
            hi = mid
        else:
            lo = mid
    return hi


def transit_timeline(
    provider,
    start: datetime,
    end: datetime,
    ayanamsa: str = "lahiri",
    bodies: Iterable[str] = SLOW_BODIES,
    step_days: float = 1.0,
    max_workers: int = 4,
) -> List[TransitEvent]:
    """Sign ingresses and retrograde stations between ``start`` and ``end``.

    Samples are computed concurrently and merged back in chronological order
    before change detection.
    """

    if end <= start:
        raise ConfigurationError("timeline end must be after start")
    if step_days <= 0:
        raise ConfigurationError("step_days must be positive")
    bodies = tuple(bodies)
    sampler = _Sampler(provider, ayanamsa, bodies)
    jd0, jd1 = datetime_to_jd(start), datetime_to_jd(end)
    jds = []
    jd = jd0
    while jd < jd1:
        jds.append(jd)
        jd += step_days
    jds.append(jd1)
    samples = fan_out(sampler, jds, max_workers=max_workers)

    events: List[TransitEvent] = []
    for (ja, sa), (jb, sb) in zip(zip(jds, samples), zip(jds[1:], samples[1:])):
        for body in bodies:
            if body not in sa or body not in sb:
                continue
            (lon_a, speed_a), (lon_b, speed_b) = sa[body], sb[body]
            sign_a, sign_b = sign_index_from_lon(lon_a), sign_index_from_lon(lon_b)
            if sign_a != sign_b:
                def left(jd, body=body, sign_a=sign_a):
                    state = sampler.state(body, jd)
                    return state is not None and sign_index_from_lon(state[0]) != sign_a

                events.append(TransitEvent(
                    "ingress", body, _bisect(ja, jb, left),
                    {"from_sign": SIGN_NAMES[sign_a], "to_sign": SIGN_NAMES[sign_b]},
                ))
            if body not in NODES and (speed_a < 0) != (speed_b < 0):
                def flipped(jd, body=body, retro_a=speed_a < 0):
                    state = sampler.state(body, jd)
                    return state is not None and (state[1] < 0) != retro_a

                events.append(TransitEvent(
                    "station", body, _bisect(ja, jb, flipped),
                    {"direction": "retrograde" if speed_b < 0 else "direct"},
                ))
    events.sort(key=lambda e: (e.jd, e.body, e.kind))
    logger.info("transit_timeline_built", extra={"events": len(events), "samples": len(jds)})
    return events


__all__ = [
    "SLOW_BODIES",
    "SadeSati",
    "SignWindow",
    "TransitAspect",
    "TransitEvent",
    "TransitReport",
    "compute_transits",
    "find_transit_aspects",
    "sade_sati",
    "sign_window",
    "transit_strength",
    "transit_timeline",
]
