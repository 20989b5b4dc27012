"""Generic planetary period (dasha) engine.

Every system is described by a :class:`PeriodSystem`; the engine itself knows
nothing about Vimshottari, Yogini or Chara. The timeline is built as:

  - the starting rule maps the anchor longitude (Moon or ascendant) to the
    birth ruler and the unelapsed fraction (balance) of its unit;
  - the first Mahadasha lasts ``balance * weight`` years, the following ones
    their full weight, cycling through the sequence until the horizon;
  - sub-periods walk the sequence again from the parent ruler and split the
    parent's duration proportionally to the weights, tiling it exactly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .errors import ConfigurationError

SIDEREAL_YEAR_DAYS = 365.25636
DEFAULT_HORIZON_YEARS = 120.0
MIN_HORIZON_YEARS = 100.0

LEVEL_NAMES = {1: "mahadasha", 2: "antardasha", 3: "pratyantardasha"}


@dataclass(frozen=True)
class PeriodSystem:
    name: str
    rulers: Tuple[str, ...]
    weights: Mapping[str, float]
    starting_rule: Callable[[float], Tuple[str, float]]
    start_rule_name: str
    max_levels: int
    anchor: str = "Moon"
    # rotation of the rulers beginning at the given one; cyclic order by default
    sequence_rule: Optional[Callable[[str], Sequence[str]]] = None
    lords: Mapping[str, str] = field(default_factory=dict)

    def sequence(self, start: str) -> List[str]:
        if self.sequence_rule is not None:
            return list(self.sequence_rule(start))
        idx = self.rulers.index(start)
        return [self.rulers[(idx + i) % len(self.rulers)] for i in range(len(self.rulers))]

    @property
    def total(self) -> float:
        return float(sum(self.weights[r] for r in self.rulers))

    def lord_of(self, ruler: str) -> str:
        return self.lords.get(ruler, ruler)


@dataclass(frozen=True, slots=True)
class DashaPeriod:
    ruler: str
    level: int
    start: datetime
    end: datetime
    is_active: bool
    lord: str
    children: Tuple["DashaPeriod", ...] = ()

    @property
    def duration_years(self) -> float:
        return (self.end - self.start).total_seconds() / 86400.0 / SIDEREAL_YEAR_DAYS

    def contains(self, at: datetime) -> bool:
        return self.start <= at < self.end

    def to_dict(self) -> dict:
        data = {
            "ruler": self.ruler,
            "lord": self.lord,
            "level": self.level,
            "level_name": LEVEL_NAMES.get(self.level, f"level_{self.level}"),
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration_years": round(self.duration_years, 6),
            "is_active": self.is_active,
        }
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data


@dataclass(frozen=True, slots=True)
class DashaTimeline:
    system: str
    start_rule: str
    anchor: str
    anchor_longitude: float
    birth_ruler: str
    balance: float
    levels: int
    periods: Tuple[DashaPeriod, ...]
    details: Dict[str, object] = field(default_factory=dict)

    def active_chain(self, at: datetime) -> List[DashaPeriod]:
        return active_chain(self.periods, at)

    def to_dict(self) -> dict:
        return {
            "system": self.system,
            "start_rule": self.start_rule,
            "anchor": self.anchor,
            "anchor_longitude": round(self.anchor_longitude, 6),
            "birth_ruler": self.birth_ruler,
            "balance": round(self.balance, 6),
            "levels": self.levels,
            "periods": [p.to_dict() for p in self.periods],
            "details": dict(self.details),
        }


def _years(years: float) -> timedelta:
    return timedelta(days=years * SIDEREAL_YEAR_DAYS)


def _active(start: datetime, end: datetime, now: Optional[datetime]) -> bool:
    return now is not None and start <= now < end


def _subdivide(
    system: PeriodSystem,
    parent_ruler: str,
    start: datetime,
    end: datetime,
    level: int,
    max_level: int,
    now: Optional[datetime],
) -> Tuple[DashaPeriod, ...]:
    if level > max_level:
        return ()
    seq = system.sequence(parent_ruler)
    total = float(sum(system.weights[r] for r in seq))
    span = end - start
    out: List[DashaPeriod] = []
    cursor = start
    elapsed = 0.0
    for idx, ruler in enumerate(seq):
        elapsed += system.weights[ruler]
        # the last child is pinned to the parent end
        child_end = end if idx == len(seq) - 1 else start + span * (elapsed / total)
        out.append(
            DashaPeriod(
                ruler=ruler,
                level=level,
                start=cursor,
                end=child_end,
                is_active=_active(cursor, child_end, now),
                lord=system.lord_of(ruler),
                children=_subdivide(system, ruler, cursor, child_end, level + 1, max_level, now),
            )
        )
        cursor = child_end
    return tuple(out)


def compute_timeline(
    system: PeriodSystem,
    anchor_longitude: float,
    birth: datetime,
    now: Optional[datetime] = None,
    levels: Optional[int] = None,
    horizon_years: float = DEFAULT_HORIZON_YEARS,
    details: Optional[Dict[str, object]] = None,
) -> DashaTimeline:
    """Build the period tree for ``system`` starting at ``birth``.

    ``now`` decides ``is_active``; when omitted nothing is marked active, so
    the result only depends on the arguments.
    """

    levels = system.max_levels if levels is None else int(levels)
    if not 1 <= levels <= system.max_levels:
        raise ConfigurationError(
            f"{system.name} supports levels 1..{system.max_levels}, got {levels}"
        )
    horizon = max(float(horizon_years), MIN_HORIZON_YEARS)

    birth_ruler, balance = system.starting_rule(anchor_longitude)
    balance = min(max(balance, 0.0), 1.0)
    seq = system.sequence(birth_ruler)

    periods: List[DashaPeriod] = []
    cursor = birth
    elapsed_years = 0.0
    idx = 0
    while elapsed_years < horizon:
        ruler = seq[idx % len(seq)]
        years = system.weights[ruler] * (balance if idx == 0 else 1.0)
        end = cursor + _years(years)
        if years > 0:
            periods.append(
                DashaPeriod(
                    ruler=ruler,
                    level=1,
                    start=cursor,
                    end=end,
                    is_active=_active(cursor, end, now),
                    lord=system.lord_of(ruler),
                    children=_subdivide(system, ruler, cursor, end, 2, levels, now),
                )
            )
        cursor = end
        elapsed_years += years
        idx += 1

    return DashaTimeline(
        system=system.name,
        start_rule=system.start_rule_name,
        anchor=system.anchor,
        anchor_longitude=anchor_longitude,
        birth_ruler=birth_ruler,
        balance=balance,
        levels=levels,
        periods=tuple(periods),
        details=details or {},
    )


def iter_periods(periods: Sequence[DashaPeriod]) -> Iterator[DashaPeriod]:
    for p in periods:
        yield p
        yield from iter_periods(p.children)


def find_period(periods: Sequence[DashaPeriod], at: datetime, level: int = 1) -> Optional[DashaPeriod]:
    for p in iter_periods(periods):
        if p.level == level and p.contains(at):
            return p
    return None


def active_chain(periods: Sequence[DashaPeriod], at: datetime) -> List[DashaPeriod]:
    """Mahadasha, antardasha, ... containing ``at``, outermost first."""

    chain: List[DashaPeriod] = []
    current: Sequence[DashaPeriod] = periods
    while current:
        match = next((p for p in current if p.contains(at)), None)
        if match is None:
            break
        chain.append(match)
        current = match.children
    return chain


__all__ = [
    "DEFAULT_HORIZON_YEARS",
    "DashaPeriod",
    "DashaTimeline",
    "PeriodSystem",
    "SIDEREAL_YEAR_DAYS",
    "active_chain",
    "compute_timeline",
    "find_period",
    "iter_periods",
]
