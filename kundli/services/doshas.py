"""Dosha templates, plus the Moon-to-Moon matching doshas used by synastry."""

from __future__ import annotations

from typing import List

from .constants import CLASSICAL_BODIES, NODES, normalize
from .dignities import BENEFICS, MALEFICS, are_friends, sign_lord
from .houses import DUSTHANA, KENDRA, house_from
from .patterns import DOSHA, SEVERITY_TO_STRENGTH, ChartState, PatternMatch, candidate, resolve

MANGLIK_HOUSES = (1, 4, 7, 8, 12)
GRAHAN_ORB = 12.0
GURU_CHANDAL_ORB = 10.0
SHRAPIT_ORB = 10.0

KAAL_SARP_TYPES = (
    "Anant", "Kulik", "Vasuki", "Shankhpal", "Padma", "Mahapadma",
    "Takshak", "Karkotak", "Shankhachood", "Ghatak", "Vishdhar", "Sheshnag",
)

# Ashwini, Ashlesha, Magha, Jyeshtha, Mula, Revati
GANDMOOL_NAKSHATRAS = (0, 8, 9, 17, 18, 26)
GANDMOOL_SEVERE = (8, 17, 18)

NADI = {
    "adi": (0, 5, 6, 11, 12, 17, 18, 23, 24),
    "madhya": (1, 4, 7, 10, 13, 16, 19, 22, 25),
    "antya": (2, 3, 8, 9, 14, 15, 20, 21, 26),
}
GANA = {
    "deva": (0, 4, 6, 7, 12, 14, 16, 21, 26),
    "manushya": (1, 3, 5, 10, 11, 24, 25, 19, 20),
    "rakshasa": (2, 8, 9, 13, 15, 17, 18, 22, 23),
}


def _dosha(kind: str, severity: str, bodies=(), cancellations=(), **details) -> PatternMatch:
    return candidate(kind, DOSHA, SEVERITY_TO_STRENGTH[severity], bodies, cancellations, severity=severity, **details)


def manglik(state: ChartState) -> List[PatternMatch]:
    if not state.has("Mars"):
        return []
    references = {"lagna": state.house("Mars")}
    for ref in ("Moon", "Venus"):
        if state.has(ref):
            references[ref.lower()] = state.from_body(ref, "Mars")
    from_refs = sorted(name for name, house in references.items() if house in MANGLIK_HOUSES)
    if not from_refs:
        return []
    severity = "high" if len(from_refs) >= 2 else "medium"
    return [_dosha(
        "manglik",
        severity,
        ["Mars"],
        [
            ("Mars in own or exaltation sign", state.strong_sign("Mars")),
            ("Jupiter aspects Mars", state.aspects_body("Jupiter", "Mars")),
            ("Mars in Cancer", state.sign("Mars") == 3),
            ("Venus aspects Mars", state.aspects_body("Venus", "Mars")),
        ],
        from_references=from_refs,
    )]


def kaal_sarp(state: ChartState) -> List[PatternMatch]:
    if not state.has("Rahu", "Ketu"):
        return []
    others = [b for b in CLASSICAL_BODIES if state.has(b)]
    if not others:
        return []
    rahu_lon = state.lon("Rahu")
    with_rahu = sum(1 for b in others if 0.0 < normalize(state.lon(b) - rahu_lon) < 180.0)
    with_ketu = sum(1 for b in others if 180.0 < normalize(state.lon(b) - rahu_lon) < 360.0)
    full = with_rahu == len(others) or with_ketu == len(others)
    partial = max(with_rahu, with_ketu) >= state.kaal_sarp_threshold
    if not full and not partial:
        return []
    rahu_house = state.house("Rahu")
    if full:
        severity = "medium" if rahu_house in DUSTHANA else "high"
    else:
        severity = "low"
    jupiter_kendra_moon = state.has("Jupiter", "Moon") and state.from_body("Moon", "Jupiter") in KENDRA
    return [_dosha(
        "kaal_sarp",
        severity,
        ["Rahu", "Ketu"],
        [
            ("Jupiter aspects the nodal axis",
             state.aspects_body("Jupiter", "Rahu") or state.aspects_body("Jupiter", "Ketu")),
            ("Rahu in Taurus or Aquarius", state.sign("Rahu") in (1, 10)),
            ("Jupiter in a kendra from the Moon", jupiter_kendra_moon),
        ],
        type=KAAL_SARP_TYPES[rahu_house - 1],
        full=full,
        hemmed=max(with_rahu, with_ketu),
    )]


def kemadruma(state: ChartState) -> List[PatternMatch]:
    if not state.has("Moon"):
        return []
    moon_sign = state.sign("Moon")
    neighbours = [
        b for b in state.positions
        if b not in NODES and b != "Moon" and state.sign(b) in ((moon_sign + 1) % 12, (moon_sign - 1) % 12)
    ]
    if neighbours:
        return []
    support = any(state.has(b) and state.from_body("Moon", b) in KENDRA for b in ("Jupiter", "Venus"))
    return [_dosha(
        "kemadruma",
        "medium",
        ["Moon"],
        [
            ("Jupiter or Venus in a kendra from the Moon", support),
            ("Moon in own or exaltation sign", state.strong_sign("Moon")),
            ("Moon in a kendra from lagna", state.house("Moon") in KENDRA),
        ],
    )]


def pitra(state: ChartState) -> List[PatternMatch]:
    if not state.has("Sun"):
        return []
    conditions = []
    if state.conjunct("Sun", "Rahu"):
        conditions.append("sun_with_rahu")
    if state.conjunct("Sun", "Saturn") or state.aspects_body("Saturn", "Sun"):
        conditions.append("saturn_affliction")
    if state.house("Sun") == 9:
        conditions.append("sun_in_ninth")
    if not conditions:
        return []
    severity = {1: "low", 2: "medium"}.get(len(conditions), "high")
    return [_dosha(
        "pitra",
        severity,
        ["Sun"],
        [
            ("Jupiter aspects the Sun", state.aspects_body("Jupiter", "Sun")),
            ("Sun in own or exaltation sign", state.strong_sign("Sun")),
            ("Sun in a kendra aspected by Venus",
             state.house("Sun") in KENDRA and state.aspects_body("Venus", "Sun")),
        ],
        conditions=conditions,
    )]


def grahan(state: ChartState) -> List[PatternMatch]:
    afflicted = [
        lum for lum in ("Sun", "Moon")
        if state.has(lum) and any(state.has(n) and state.distance(lum, n) <= GRAHAN_ORB for n in NODES)
    ]
    if not afflicted:
        return []
    return [_dosha(
        "grahan",
        "medium",
        afflicted,
        [("Jupiter aspects the afflicted luminary", any(state.aspects_body("Jupiter", lum) for lum in afflicted))],
    )]


def guru_chandal(state: ChartState) -> List[PatternMatch]:
    if not state.has("Jupiter", "Rahu"):
        return []
    close = state.distance("Jupiter", "Rahu") <= GURU_CHANDAL_ORB
    if not close and not state.aspects_body("Rahu", "Jupiter"):
        return []
    return [_dosha(
        "guru_chandal",
        "medium",
        ["Jupiter", "Rahu"],
        [
            ("Jupiter in own or exaltation sign", state.strong_sign("Jupiter")),
            ("Jupiter in a kendra", state.house("Jupiter") in KENDRA),
        ],
        relation="conjunction" if close else "aspect",
    )]


def shrapit(state: ChartState) -> List[PatternMatch]:
    if not state.has("Saturn", "Rahu") or state.distance("Saturn", "Rahu") > SHRAPIT_ORB:
        return []
    return [_dosha(
        "shrapit",
        "high",
        ["Saturn", "Rahu"],
        [
            ("Jupiter aspects Saturn or Rahu",
             state.aspects_body("Jupiter", "Saturn") or state.aspects_body("Jupiter", "Rahu")),
            ("Saturn in own or exaltation sign", state.strong_sign("Saturn")),
        ],
    )]


def gandmool(state: ChartState) -> List[PatternMatch]:
    if not state.has("Moon"):
        return []
    nak = state.pos("Moon").nakshatra
    if nak not in GANDMOOL_NAKSHATRAS:
        return []
    return [_dosha(
        "gandmool",
        "medium" if nak in GANDMOOL_SEVERE else "low",
        ["Moon"],
        [
            ("Moon in own or exaltation sign", state.strong_sign("Moon")),
            ("Jupiter aspects the Moon", state.aspects_body("Jupiter", "Moon")),
        ],
        nakshatra=nak,
    )]


def papa_kartari(state: ChartState) -> List[PatternMatch]:
    asc = state.ascendant_sign
    twelfth = [b for b in state.in_sign(asc - 1) if b in MALEFICS]
    second = [b for b in state.in_sign(asc + 1) if b in MALEFICS]
    if not twelfth or not second:
        return []
    return [_dosha(
        "papa_kartari",
        "medium",
        twelfth + second,
        [
            ("Benefic in lagna", any(b in BENEFICS for b in state.in_sign(asc))),
            ("Jupiter aspects lagna", state.aspects("Jupiter", asc)),
        ],
    )]


DOSHA_TEMPLATES = (
    manglik,
    kaal_sarp,
    kemadruma,
    pitra,
    grahan,
    guru_chandal,
    shrapit,
    gandmool,
    papa_kartari,
)

DOSHA_KINDS = (
    "manglik", "kaal_sarp", "kemadruma", "pitra", "grahan",
    "guru_chandal", "shrapit", "gandmool", "papa_kartari",
)


# -- matching doshas ---------------------------------------------------------

def _group(table, nakshatra: int) -> str:
    for name, members in table.items():
        if nakshatra in members:
            return name
    raise ValueError(f"nakshatra out of range: {nakshatra}")


def nadi_of(nakshatra: int) -> str:
    return _group(NADI, nakshatra)


def gana_of(nakshatra: int) -> str:
    return _group(GANA, nakshatra)


def _friendly_lords(sign_a: int, sign_b: int) -> bool:
    la, lb = sign_lord(sign_a), sign_lord(sign_b)
    return la == lb or are_friends(la, lb) or are_friends(lb, la)


def nadi_dosha(moon_a, moon_b) -> List[PatternMatch]:
    nadi = nadi_of(moon_a.nakshatra)
    if nadi != nadi_of(moon_b.nakshatra):
        return []
    return [_dosha(
        "nadi",
        "high",
        ["Moon"],
        [
            ("same sign, different nakshatra",
             moon_a.sign == moon_b.sign and moon_a.nakshatra != moon_b.nakshatra),
            ("same nakshatra, different pada",
             moon_a.nakshatra == moon_b.nakshatra and moon_a.pada != moon_b.pada),
        ],
        nadi=nadi,
    )]


def bhakoot_dosha(moon_a, moon_b) -> List[PatternMatch]:
    diff = (moon_b.sign - moon_a.sign) % 12
    if diff in (5, 7):
        severity, pair = "high", "6-8"
    elif diff in (1, 11):
        severity, pair = "medium", "2-12"
    else:
        return []
    la, lb = sign_lord(moon_a.sign), sign_lord(moon_b.sign)
    return [_dosha(
        "bhakoot",
        severity,
        ["Moon"],
        [
            ("same sign lord", la == lb),
            ("friendly sign lords", la != lb and (are_friends(la, lb) or are_friends(lb, la))),
        ],
        pair=pair,
        house_from_first=house_from(moon_a.sign, moon_b.sign),
    )]


def gana_dosha(moon_a, moon_b) -> List[PatternMatch]:
    ganas = {gana_of(moon_a.nakshatra), gana_of(moon_b.nakshatra)}
    if ganas == {"deva", "rakshasa"}:
        severity = "high"
    elif ganas == {"manushya", "rakshasa"}:
        severity = "medium"
    else:
        return []
    return [_dosha(
        "gana",
        severity,
        ["Moon"],
        [("friendly Moon sign lords", _friendly_lords(moon_a.sign, moon_b.sign))],
        ganas=sorted(ganas),
    )]


def matching_doshas(moon_a, moon_b) -> List[PatternMatch]:
    """Nadi, Bhakoot and Gana between two natal Moons, resolved and sorted."""

    found = nadi_dosha(moon_a, moon_b) + bhakoot_dosha(moon_a, moon_b) + gana_dosha(moon_a, moon_b)
    return sorted((resolve(m) for m in found), key=PatternMatch.sort_key)
