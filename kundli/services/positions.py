"""Sidereal planet positions with sign, nakshatra, pada and dignity."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .ayanamsa import to_sidereal
from .constants import (
    BODIES,
    NAKSHATRAS,
    NODES,
    SIGN_NAMES,
    degree_in_sign,
    nakshatra_bounds,
    nakshatra_index,
    normalize,
    pada_of,
    sign_index_from_lon,
    validate_body,
)
from .dignities import DEFAULT_EXALTATION_ORB, RETROGRADE, resolve_dignity
from .ephem import resolve_bodies

logger = logging.getLogger(__name__)

KARAKA_NAMES = (
    "Atmakaraka",
    "Amatyakaraka",
    "Bhratrukaraka",
    "Matrukaraka",
    "Putrakaraka",
    "Gnatikaraka",
    "Darakaraka",
)

# re-exported for callers that only need the arithmetic
sign_index = sign_index_from_lon
pada = pada_of
__all__ = [
    "PlanetPosition",
    "chara_karakas",
    "degree_in_sign",
    "nakshatra_bounds",
    "nakshatra_index",
    "pada",
    "resolve_position",
    "resolve_positions",
    "sign_index",
]


@dataclass(frozen=True, slots=True)
class PlanetPosition:
    body: str
    longitude: float
    sign: int
    degree_in_sign: float
    nakshatra: int
    pada: int
    is_retrograde: bool
    speed: Optional[float]
    latitude: float
    dignity: str

    @property
    def sign_name(self) -> str:
        return SIGN_NAMES[self.sign]

    @property
    def nakshatra_name(self) -> str:
        return NAKSHATRAS[self.nakshatra]

    def to_dict(self) -> dict:
        data = asdict(self)
        data["sign_name"] = self.sign_name
        data["nakshatra_name"] = self.nakshatra_name
        return data


def resolve_position(
    body: str,
    longitude: float,
    speed: Optional[float] = None,
    latitude: float = 0.0,
    orb: float = DEFAULT_EXALTATION_ORB,
) -> PlanetPosition:
    validate_body(body)
    lon = normalize(longitude)
    dignity = resolve_dignity(body, lon, speed, orb)
    return PlanetPosition(
        body=body,
        longitude=lon,
        sign=sign_index_from_lon(lon),
        degree_in_sign=degree_in_sign(lon),
        nakshatra=nakshatra_index(lon),
        pada=pada_of(lon),
        # nodes are always retrograde in mean motion
        is_retrograde=body in NODES or dignity == RETROGRADE,
        speed=speed,
        latitude=latitude,
        dignity=dignity,
    )


def resolve_positions(
    provider,
    jd_ut: float,
    ayanamsa: float,
    bodies: Iterable[str] = BODIES,
    orb: float = DEFAULT_EXALTATION_ORB,
) -> Tuple[Dict[str, PlanetPosition], List[str]]:
    """Resolve every requested body.

    Returns the positions that could be resolved plus the names of the bodies
    the provider failed on. Missing bodies are never zero-filled.
    """

    bodies = [validate_body(b) for b in bodies]
    states = resolve_bodies(provider, jd_ut, bodies)
    positions: Dict[str, PlanetPosition] = {}
    missing: List[str] = []
    for body in bodies:
        outcome = states[body]
        if not outcome.ok:
            missing.append(body)
            continue
        state = outcome.value
        positions[body] = resolve_position(
            body,
            to_sidereal(state.longitude, ayanamsa),
            speed=state.speed,
            latitude=state.latitude,
            orb=orb,
        )
    if missing:
        logger.info("positions_partial", extra={"missing": missing, "jd_ut": jd_ut})
    return positions, missing


def chara_karakas(positions: Mapping[str, PlanetPosition]) -> List[Dict[str, object]]:
    """Jaimini karakas by descending degree within sign, nodes excluded."""

    ranked = sorted(
        (p for p in positions.values() if p.body not in NODES),
        key=lambda p: (-p.degree_in_sign, BODIES.index(p.body)),
    )
    return [
        {"karaka": name, "body": p.body, "degree_in_sign": round(p.degree_in_sign, 4)}
        for name, p in zip(KARAKA_NAMES, ranked)
    ]
