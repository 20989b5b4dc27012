"""Pattern (yoga/dosha) detection engine.

A template is a pure function ``ChartState -> iterable of PatternMatch``
candidates. Candidates carry an initial strength and the cancellation rules
that were evaluated; :func:`resolve` turns them into the final strength:

  - no active cancellation keeps the initial strength,
  - one active cancellation lowers it by a single step (never raises it),
  - two or more active cancellations mark it ``cancelled``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .constants import BODIES, NODES, angular_distance
from .dignities import (
    aspects_sign,
    in_debilitation_sign,
    in_exaltation_sign,
    is_combust,
    owns,
    sign_lord,
)
from .houses import house_from

STRONG = "strong"
MODERATE = "moderate"
WEAK = "weak"
CANCELLED = "cancelled"
STRENGTH_ORDER = (STRONG, MODERATE, WEAK)

SEVERITY_TO_STRENGTH = {"high": STRONG, "medium": MODERATE, "low": WEAK}

YOGA = "yoga"
DOSHA = "dosha"


@dataclass(frozen=True, slots=True)
class Cancellation:
    rule: str
    active: bool

    def to_dict(self) -> dict:
        return {"rule": self.rule, "active": self.active}


@dataclass(frozen=True, slots=True)
class PatternMatch:
    kind: str
    category: str
    initial_strength: str
    strength: str
    bodies: Tuple[str, ...] = ()
    cancellations: Tuple[Cancellation, ...] = ()
    details: Dict[str, object] = field(default_factory=dict)

    @property
    def active_cancellations(self) -> int:
        return sum(1 for c in self.cancellations if c.active)

    @property
    def cancellation_reasons(self) -> List[str]:
        return [c.rule for c in self.cancellations if c.active]

    @property
    def is_cancelled(self) -> bool:
        return self.strength == CANCELLED

    def sort_key(self) -> tuple:
        return (
            0 if self.category == YOGA else 1,
            self.kind,
            self.bodies,
            json.dumps(self.details, sort_keys=True, default=str),
        )

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "category": self.category,
            "strength": self.strength,
            "initial_strength": self.initial_strength,
            "bodies": list(self.bodies),
            "cancellations": [c.to_dict() for c in self.cancellations],
            "cancellation_reasons": self.cancellation_reasons,
            "details": dict(self.details),
        }


def candidate(
    kind: str,
    category: str,
    strength: str,
    bodies: Iterable[str] = (),
    cancellations: Iterable[Tuple[str, bool]] = (),
    **details,
) -> PatternMatch:
    if strength not in STRENGTH_ORDER:
        raise ValueError(f"initial strength must be one of {STRENGTH_ORDER}, got {strength!r}")
    return PatternMatch(
        kind=kind,
        category=category,
        initial_strength=strength,
        strength=strength,
        bodies=tuple(bodies),
        cancellations=tuple(Cancellation(rule, bool(active)) for rule, active in cancellations),
        details=details,
    )


def resolve_strength(initial: str, active: int) -> str:
    if active <= 0:
        return initial
    if active >= 2:
        return CANCELLED
    idx = STRENGTH_ORDER.index(initial)
    return STRENGTH_ORDER[min(idx + 1, len(STRENGTH_ORDER) - 1)]


def resolve(match: PatternMatch) -> PatternMatch:
    return replace(match, strength=resolve_strength(match.initial_strength, match.active_cancellations))


@dataclass(frozen=True)
class ChartState:
    """Read-only view over a resolved chart used by every template."""

    positions: Mapping[str, object]
    ascendant_sign: int
    placements: Mapping[str, int] = field(default_factory=dict)
    house_signs: Tuple[int, ...] = ()
    kaal_sarp_threshold: int = 5

    def __post_init__(self) -> None:
        # canonical body order keeps every template independent of input order
        ordered = {b: self.positions[b] for b in BODIES if b in self.positions}
        object.__setattr__(self, "positions", ordered)

    @classmethod
    def from_layout(cls, positions, layout, kaal_sarp_threshold: int = 5) -> "ChartState":
        return cls(
            positions=positions,
            ascendant_sign=layout.ascendant_sign,
            placements=dict(layout.placements),
            house_signs=tuple(h.sign for h in layout.houses),
            kaal_sarp_threshold=kaal_sarp_threshold,
        )

    def has(self, *bodies: str) -> bool:
        return all(b in self.positions for b in bodies)

    def pos(self, body: str):
        return self.positions[body]

    def sign(self, body: str) -> int:
        return self.positions[body].sign

    def lon(self, body: str) -> float:
        return self.positions[body].longitude

    def status(self, body: str) -> str:
        return self.positions[body].dignity

    def house(self, body: str) -> int:
        if body in self.placements:
            return self.placements[body]
        return house_from(self.ascendant_sign, self.sign(body))

    def house_sign(self, number: int) -> int:
        if self.house_signs:
            return self.house_signs[number - 1]
        return (self.ascendant_sign + number - 1) % 12

    def lord(self, number: int) -> str:
        return sign_lord(self.house_sign(number))

    def from_body(self, reference: str, body: str) -> int:
        """House of ``body`` counted from ``reference`` (1..12)."""
        return house_from(self.sign(reference), self.sign(body))

    def in_sign(self, sign: int, exclude: Sequence[str] = ()) -> List[str]:
        return [b for b, p in self.positions.items() if p.sign == sign % 12 and b not in exclude]

    def in_house(self, number: int) -> List[str]:
        return [b for b in self.positions if self.house(b) == number]

    def strong_sign(self, body: str) -> bool:
        sign = self.sign(body)
        return owns(body, sign) or in_exaltation_sign(body, sign)

    def exalted_sign(self, body: str) -> bool:
        return in_exaltation_sign(body, self.sign(body))

    def debilitated_sign(self, body: str) -> bool:
        return in_debilitation_sign(body, self.sign(body))

    def aspects(self, body: str, target_sign: int) -> bool:
        return self.has(body) and aspects_sign(body, self.sign(body), target_sign)

    def aspects_body(self, body: str, target: str) -> bool:
        return self.has(body, target) and self.aspects(body, self.sign(target))

    def conjunct(self, a: str, b: str) -> bool:
        return self.has(a, b) and self.sign(a) == self.sign(b)

    def with_node(self, body: str) -> bool:
        return any(self.conjunct(body, node) for node in NODES if node != body)

    def combust(self, body: str) -> bool:
        if not self.has(body, "Sun"):
            return False
        p = self.pos(body)
        return is_combust(body, p.longitude, self.lon("Sun"), p.is_retrograde)

    def distance(self, a: str, b: str) -> float:
        return angular_distance(self.lon(a), self.lon(b))


Template = Callable[[ChartState], Iterable[PatternMatch]]


def run_templates(state: ChartState, templates: Iterable[Template]) -> List[PatternMatch]:
    out = [resolve(m) for template in templates for m in template(state)]
    return sorted(out, key=PatternMatch.sort_key)


def detect_patterns(state: ChartState, templates: Optional[Iterable[Template]] = None) -> List[PatternMatch]:
    if templates is None:
        from .doshas import DOSHA_TEMPLATES
        from .yogas import YOGA_TEMPLATES

        templates = list(YOGA_TEMPLATES) + list(DOSHA_TEMPLATES)
    return run_templates(state, templates)


def has_pattern(matches: Iterable[PatternMatch], kind: str) -> bool:
    """Present and not cancelled."""
    return any(m.kind == kind and not m.is_cancelled for m in matches)


def summarize(matches: Iterable[PatternMatch]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for m in matches:
        key = f"{m.category}:{m.strength}"
        counts[key] = counts.get(key, 0) + 1
    return counts
