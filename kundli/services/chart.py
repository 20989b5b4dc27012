"""Full chart pipeline.

Resolves positions and houses first, then derives vargas, dashas, strength,
patterns and ashtakavarga from them. Each derived feature is an :data:`Outcome`, so a feature
that cannot be computed is reported as degraded without blanking the rest.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from hashlib import sha256
from typing import Any, Dict, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

from .ashtakavarga import Ashtakavarga, ashtakavarga
from .ayanamsa import ayanamsa_value, to_dms
from .constants import NODES, SIGN_NAMES, fmt_deg, sign_index_from_lon, validate_body
from .dasha_systems import SYSTEMS, compute_dasha
from .dashas import DashaPeriod, DashaTimeline
from .doshas import DOSHA_KINDS
from .ephem import ENGINE_VERSION, fan_out, jd_to_datetime, to_jd_utc
from .errors import (
    MISSING_BODIES,
    ConfigurationError,
    Degraded,
    MissingBodiesError,
    Outcome,
    Resolved,
    attempt,
)
from .houses import HouseLayout, resolve_houses
from .patterns import ChartState, PatternMatch, detect_patterns, has_pattern, summarize
from .positions import PlanetPosition, chara_karakas, resolve_positions
from .settings import EngineConfig
from .shadbala import StrengthScore, build_time_context, shadbala
from .vargas import DivisionalChart, divisional_chart, parse_division
from .yogas import YOGA_KINDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BirthData:
    date: str
    time: str
    tz: str
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ConfigurationError(f"latitude out of range: {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise ConfigurationError(f"longitude out of range: {self.lon}")

    def local_datetime(self) -> datetime:
        try:
            zone = ZoneInfo(self.tz)
        except (KeyError, ValueError) as exc:
            raise ConfigurationError(f"unknown timezone: {self.tz!r}") from exc
        try:
            return datetime.fromisoformat(f"{self.date}T{self.time}").replace(tzinfo=zone)
        except ValueError as exc:
            raise ConfigurationError(f"invalid date/time: {self.date} {self.time}") from exc

    def utc_datetime(self) -> datetime:
        return self.local_datetime().astimezone(timezone.utc)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "time": self.time,
            "tz": self.tz,
            "lat": round(self.lat, 6),
            "lon": round(self.lon, 6),
        }


def chart_id_for(birth: BirthData, config: EngineConfig) -> str:
    seed = json.dumps({"birth": birth.to_dict(), "config": config.to_dict()}, sort_keys=True)
    return "cht_" + sha256(seed.encode()).hexdigest()[:24]


@dataclass(frozen=True, slots=True)
class ChartResult:
    meta: Dict[str, Any]
    birth: BirthData
    config: EngineConfig
    jd_ut: float
    ayanamsa: float
    positions: Mapping[str, PlanetPosition]
    unavailable: Tuple[str, ...]
    houses: HouseLayout
    vargas: Mapping[str, Outcome]
    dashas: Mapping[str, Outcome]
    strength: Outcome
    patterns: Outcome
    ashtakavarga: Outcome
    karakas: List[Dict[str, object]] = field(default_factory=list)

    @property
    def ascendant(self) -> Optional[float]:
        return None if self.houses.degraded else self.houses.ascendant

    def to_dict(self) -> dict:
        asc = self.ascendant
        patterns = self.patterns.to_dict()
        if self.patterns.ok:
            patterns["value"] = [m.to_dict() for m in self.patterns.value]
            patterns["summary"] = summarize(self.patterns.value)
        strength = self.strength.to_dict()
        if self.strength.ok:
            strength["value"] = {b: s.to_dict() for b, s in self.strength.value.items()}
        return {
            "meta": dict(self.meta),
            "birth": self.birth.to_dict(),
            "ayanamsa": {
                "variant": self.config.ayanamsa,
                "value": round(self.ayanamsa, 6),
                "dms": to_dms(self.ayanamsa),
            },
            "ascendant": None if asc is None else {
                "longitude": round(asc, 6),
                "sign": SIGN_NAMES[sign_index_from_lon(asc)],
                "formatted": fmt_deg(asc),
            },
            "houses": self.houses.to_dict(),
            "positions": {b: p.to_dict() for b, p in self.positions.items()},
            "unavailable": list(self.unavailable),
            "vargas": {k: v.to_dict() for k, v in self.vargas.items()},
            "dashas": {k: v.to_dict() for k, v in self.dashas.items()},
            "strength": strength,
            "patterns": patterns,
            "ashtakavarga": self.ashtakavarga.to_dict(),
            "karakas": list(self.karakas),
        }


def _strength_table(provider, birth_local, jd_ut, birth: BirthData, positions, layout, day_model):
    if "Sun" not in positions or "Moon" not in positions:
        raise MissingBodiesError([b for b in ("Sun", "Moon") if b not in positions])
    ctx = build_time_context(
        birth_local,
        positions["Sun"].longitude,
        positions["Moon"].longitude,
        day_model=day_model,
        provider=provider,
        jd_ut=jd_ut,
        lat=birth.lat,
        lon=birth.lon,
    )
    return shadbala(positions, layout.placements, ctx)


def _noted(outcome: Outcome, notes: Tuple[str, ...]) -> Outcome:
    if outcome.ok and notes:
        return Resolved(outcome.value, notes)
    return outcome


def compute_chart(
    provider,
    birth: BirthData,
    config: Optional[EngineConfig] = None,
    now: Optional[datetime] = None,
) -> ChartResult:
    """Compute the full sidereal chart for ``birth``.

    ``now`` only marks the active dasha periods; leaving it out keeps the
    result a pure function of the birth data and the config.

    The ayanamsa is the one input every feature depends on, so an instant the
    provider cannot give an ayanamsa for raises ``OutOfRangeError`` for the
    whole chart instead of degrading. Without house cusps, strength and
    patterns run on the Aries fallback lagna and carry a
    ``house_cusps_unavailable`` note.
    """

    config = config or EngineConfig.from_env()
    birth_local = birth.local_datetime()
    jd_ut = to_jd_utc(birth.date, birth.time, birth.tz)
    birth_utc = birth.utc_datetime()

    offset = ayanamsa_value(provider, jd_ut, config.ayanamsa)
    positions, missing = resolve_positions(provider, jd_ut, offset, orb=config.dignity_orb)
    layout = resolve_houses(
        provider, jd_ut, birth.lat, birth.lon, config.house_system, offset, positions
    )
    ascendant = None if layout.degraded else layout.ascendant
    notes: Tuple[str, ...] = (layout.degraded,) if layout.degraded else ()

    vargas: Dict[str, Outcome] = {
        f"D{d}": attempt(f"varga_D{d}", divisional_chart, positions, ascendant, d)
        for d in config.vargas
    }

    def run_dasha(name: str) -> Outcome:
        return attempt(
            f"dasha_{name}",
            compute_dasha,
            name,
            positions,
            ascendant,
            birth_utc,
            now=now,
            levels=config.dasha_levels,
            horizon_years=config.dasha_horizon_years,
            clamp_levels=True,
        )

    dashas = dict(zip(SYSTEMS, fan_out(run_dasha, SYSTEMS, max_workers=config.max_workers)))

    strength = attempt(
        "strength",
        _strength_table,
        provider,
        birth_local,
        jd_ut,
        birth,
        positions,
        layout,
        config.day_model,
    )
    state = ChartState.from_layout(positions, layout, config.kaal_sarp_partial_threshold)
    patterns = attempt("patterns", detect_patterns, state)
    # both ran on the Aries fallback lagna when cusps are missing
    strength, patterns = _noted(strength, notes), _noted(patterns, notes)
    avarga = attempt(
        "ashtakavarga",
        ashtakavarga,
        positions,
        None if layout.degraded else layout.ascendant_sign,
    )

    warnings: List[str] = []
    if layout.degraded:
        warnings.append(f"houses: {layout.degraded}")
    if missing:
        warnings.append("unavailable bodies: " + ", ".join(missing))
    meta = {
        "chart_id": chart_id_for(birth, config),
        "engine": "kundli-engine",
        "engine_version": ENGINE_VERSION,
        "zodiac": "sidereal",
        "ayanamsa": config.ayanamsa,
        "house_system": config.house_system,
        "node_type": config.node_type,
        "backend": "moseph" if os.getenv("EPHEMERIS_BACKEND", "swieph") == "moseph" else "swieph",
        "jd_ut": round(jd_ut, 8),
        "utc": jd_to_datetime(jd_ut).replace(microsecond=0).isoformat(),
        "warnings": warnings or None,
    }
    logger.info(
        "chart_computed",
        extra={
            "chart_id": meta["chart_id"],
            "unavailable": missing,
            "degraded": sorted(
                k for k, v in {
                    **vargas,
                    **dashas,
                    "strength": strength,
                    "patterns": patterns,
                    "ashtakavarga": avarga,
                }.items()
                if isinstance(v, Degraded)
            ),
        },
    )
    return ChartResult(
        meta=meta,
        birth=birth,
        config=config,
        jd_ut=jd_ut,
        ayanamsa=offset,
        positions=positions,
        unavailable=tuple(missing),
        houses=layout,
        vargas=vargas,
        dashas=dashas,
        strength=strength,
        patterns=patterns,
        ashtakavarga=avarga,
        karakas=chara_karakas(positions),
    )


# -- point queries -------------------------------------------------------------

def strength_of(chart: ChartResult, body: str) -> Outcome:
    """Strength of one classical body, degraded when the table is."""

    body = validate_body(body)
    if body in NODES:
        raise ConfigurationError(f"shadbala is defined for the seven classical bodies, not {body!r}")
    if not chart.strength.ok:
        return chart.strength
    table = chart.strength.value
    if body not in table:
        return Degraded(MISSING_BODIES, f"missing bodies: {body}")
    return Resolved(table[body])


def active_dasha_chain(chart: ChartResult, system: str, at: datetime) -> Outcome:
    key = (system or "").strip().lower()
    if key not in chart.dashas:
        raise ConfigurationError(f"unknown dasha system: {system!r}")
    outcome = chart.dashas[key]
    if not outcome.ok:
        return outcome
    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    timeline: DashaTimeline = outcome.value
    chain: List[DashaPeriod] = timeline.active_chain(at)
    return Resolved(chain)


def is_pattern_present(chart: ChartResult, kind: str) -> Outcome:
    kind = (kind or "").strip().lower()
    if kind not in YOGA_KINDS and kind not in DOSHA_KINDS:
        raise ConfigurationError(f"unknown pattern kind: {kind!r}")
    if not chart.patterns.ok:
        return chart.patterns
    matches: List[PatternMatch] = chart.patterns.value
    return Resolved(has_pattern(matches, kind))


def varga(chart: ChartResult, division) -> Outcome:
    """Divisional chart by number or ``"D9"`` name, computed on demand if absent."""

    d = parse_division(division)
    key = f"D{d}"
    if key in chart.vargas:
        return chart.vargas[key]
    return attempt(f"varga_{key}", divisional_chart, chart.positions, chart.ascendant, d)


__all__ = [
    "BirthData",
    "Ashtakavarga",
    "ChartResult",
    "DivisionalChart",
    "StrengthScore",
    "active_dasha_chain",
    "chart_id_for",
    "compute_chart",
    "is_pattern_present",
    "strength_of",
    "varga",
]
