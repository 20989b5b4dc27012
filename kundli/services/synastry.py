from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Tuple

from .aspects import ASPECT_NATURE, _angle_diff, closest_aspect
from .constants import SIGN_NAMES, normalize, sign_index_from_lon
from .doshas import matching_doshas
from .patterns import PatternMatch

SYNASTRY_ORBS = {
    "conjunction": 8.0,
    "opposition": 8.0,
    "trine": 7.0,
    "square": 7.0,
    "sextile": 5.0,
    "quincunx": 3.0,
}

NATURE_BASE = {"harmonious": 10.0, "challenging": -8.0, "neutral": 3.0, "adjusting": -2.0}

BODY_WEIGHTS = {
    "Sun": 10,
    "Moon": 10,
    "Venus": 9,
    "Mars": 8,
    "Jupiter": 7,
    "Saturn": 7,
    "Mercury": 6,
    "Rahu": 4,
    "Ketu": 4,
}

BASE_SCORE = 50.0


@dataclass(frozen=True, slots=True)
class SynastryAspect:
    p1: str
    p2: str
    aspect: str
    orb: float
    weight: float

    @property
    def nature(self) -> str:
        return ASPECT_NATURE[self.aspect]

    def to_dict(self) -> dict:
        return {
            "p1": self.p1,
            "p2": self.p2,
            "type": self.aspect,
            "nature": self.nature,
            "orb": round(self.orb, 4),
            "weight": round(self.weight, 4),
        }


def aspect_weight(aspect: str, orb: float, p1: str, p2: str) -> float:
    base = NATURE_BASE[ASPECT_NATURE[aspect]]
    orb_factor = 1.0 - orb / SYNASTRY_ORBS[aspect]
    return base * orb_factor * (BODY_WEIGHTS.get(p1, 0) + BODY_WEIGHTS.get(p2, 0)) / 10.0


def synastry(positions_a: Mapping[str, object], positions_b: Mapping[str, object]) -> List[SynastryAspect]:
    res = []
    for a_name, a_pos in positions_a.items():
        for b_name, b_pos in positions_b.items():
            hit = closest_aspect(a_pos.longitude, b_pos.longitude, SYNASTRY_ORBS)
            if hit is None:
                continue
            aspect, orb = hit
            res.append(SynastryAspect(a_name, b_name, aspect, orb, aspect_weight(aspect, orb, a_name, b_name)))
    res.sort(key=lambda x: (-x.weight, x.p1, x.p2))
    return res


def aggregate_score(syn: List[SynastryAspect]) -> float:
    s = BASE_SCORE + sum(x.weight for x in syn)
    return round(max(0.0, min(100.0, s)), 2)


def midpoint(a: float, b: float) -> float:
    """Midpoint on the shorter arc between two longitudes."""

    diff = (b - a) % 360.0
    if diff > 180.0:
        diff -= 360.0
    return normalize(a + diff / 2.0)


def midpoint_composite(positions_a: Mapping[str, object], positions_b: Mapping[str, object]) -> List[Dict[str, object]]:
    comp = []
    for name, a_pos in positions_a.items():
        b_pos = positions_b.get(name)
        if b_pos is None:
            continue
        lon = midpoint(a_pos.longitude, b_pos.longitude)
        comp.append(
            {
                "name": name,
                "lon": round(lon, 6),
                "sign": SIGN_NAMES[sign_index_from_lon(lon)],
                "separation": round(_angle_diff(a_pos.longitude, b_pos.longitude), 4),
            }
        )
    return comp


@dataclass(frozen=True, slots=True)
class CompatibilityReport:
    score: float
    aspects: Tuple[SynastryAspect, ...]
    doshas: Tuple[PatternMatch, ...]
    composite: Tuple[Dict[str, object], ...]

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "aspects": [a.to_dict() for a in self.aspects],
            "doshas": [d.to_dict() for d in self.doshas],
            "composite": list(self.composite),
        }


def compatibility(positions_a: Mapping[str, object], positions_b: Mapping[str, object]) -> CompatibilityReport:
    syn = synastry(positions_a, positions_b)
    doshas: List[PatternMatch] = []
    if "Moon" in positions_a and "Moon" in positions_b:
        doshas = matching_doshas(positions_a["Moon"], positions_b["Moon"])
    return CompatibilityReport(
        score=aggregate_score(syn),
        aspects=tuple(syn),
        doshas=tuple(doshas),
        composite=tuple(midpoint_composite(positions_a, positions_b)),
    )
