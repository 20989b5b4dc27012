"""Yoga templates."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from .constants import NODES
from .dignities import EXALTED, NATURAL_BENEFICS, OWN_SIGN, RETROGRADE, sign_lord
from .houses import DUSTHANA, KENDRA
from .patterns import MODERATE, STRONG, WEAK, YOGA, ChartState, PatternMatch, candidate

MAHAPURUSHA = {
    "Mars": "ruchaka",
    "Mercury": "bhadra",
    "Jupiter": "hamsa",
    "Venus": "malavya",
    "Saturn": "sasa",
}
KENDRA_TRIKONA = (1, 4, 5, 7, 9, 10)
LUMINARIES_AND_NODES = ("Sun", "Moon") + NODES


def _yoga(kind: str, strength: str, bodies: Iterable[str] = (), cancellations=(), **details) -> PatternMatch:
    return candidate(kind, YOGA, strength, bodies, cancellations, **details)


def _strength_from_planets(state: ChartState, bodies: Sequence[str]) -> str:
    exalted = any(state.exalted_sign(b) for b in bodies)
    debilitated = any(state.debilitated_sign(b) for b in bodies)
    if exalted and not debilitated:
        return STRONG
    if debilitated:
        return WEAK
    if any(state.status(b) == OWN_SIGN for b in bodies) or any(not state.pos(b).is_retrograde for b in bodies):
        return MODERATE
    return WEAK


def _around(state: ChartState, reference: str, kind_second: str, kind_twelfth: str, kind_both: str) -> List[PatternMatch]:
    if not state.has(reference):
        return []
    ref_sign = state.sign(reference)
    second = state.in_sign(ref_sign + 1, exclude=LUMINARIES_AND_NODES)
    twelfth = state.in_sign(ref_sign - 1, exclude=LUMINARIES_AND_NODES)
    if second and twelfth:
        bodies = second + twelfth
        return [_yoga(kind_both, _strength_from_planets(state, bodies), [reference] + bodies,
                      second=second, twelfth=twelfth)]
    if second:
        return [_yoga(kind_second, _strength_from_planets(state, second), [reference] + second, second=second)]
    if twelfth:
        return [_yoga(kind_twelfth, _strength_from_planets(state, twelfth), [reference] + twelfth, twelfth=twelfth)]
    return []


def mahapurusha(state: ChartState) -> List[PatternMatch]:
    out = []
    for body, kind in MAHAPURUSHA.items():
        if not state.has(body):
            continue
        house = state.house(body)
        if house not in KENDRA or not state.strong_sign(body):
            continue
        status = state.status(body)
        if status == EXALTED and house in (1, 10):
            strength = STRONG
        elif status == OWN_SIGN or house in (1, 10):
            strength = MODERATE
        elif status == RETROGRADE:
            strength = WEAK
        else:
            strength = MODERATE
        out.append(_yoga(
            kind,
            strength,
            [body],
            [
                (f"{body} combust", state.combust(body)),
                (f"{body} conjunct a lunar node", state.with_node(body)),
            ],
            house=house,
        ))
    return out


def gaja_kesari(state: ChartState) -> List[PatternMatch]:
    if not state.has("Jupiter", "Moon"):
        return []
    house = state.from_body("Moon", "Jupiter")
    if house not in KENDRA:
        return []
    if state.strong_sign("Jupiter"):
        strength = STRONG
    elif state.debilitated_sign("Jupiter") or state.pos("Jupiter").is_retrograde:
        strength = WEAK
    else:
        strength = MODERATE
    return [_yoga(
        "gaja_kesari",
        strength,
        ["Jupiter", "Moon"],
        [
            ("Jupiter combust", state.combust("Jupiter")),
            ("Moon conjunct a lunar node", state.with_node("Moon")),
        ],
        jupiter_house_from_moon=house,
    )]


def budhaditya(state: ChartState) -> List[PatternMatch]:
    if not state.conjunct("Sun", "Mercury"):
        return []
    if state.house("Sun") in DUSTHANA:
        strength = WEAK
    elif state.exalted_sign("Sun") or state.exalted_sign("Mercury"):
        strength = STRONG
    elif state.distance("Sun", "Mercury") < 3.0:
        strength = WEAK
    else:
        strength = MODERATE
    return [_yoga("budhaditya", strength, ["Sun", "Mercury"], house=state.house("Sun"))]


def raja(state: ChartState) -> List[PatternMatch]:
    out = []
    seen = set()
    for k_house in KENDRA:
        for t_house in (5, 9):
            k_lord, t_lord = state.lord(k_house), state.lord(t_house)
            if k_lord == t_lord or not state.has(k_lord, t_lord):
                continue
            key = frozenset((k_lord, t_lord))
            if key in seen:
                continue
            if state.conjunct(k_lord, t_lord):
                if state.strong_sign(k_lord) and state.strong_sign(t_lord):
                    strength = STRONG
                elif state.debilitated_sign(k_lord) or state.debilitated_sign(t_lord):
                    strength = WEAK
                else:
                    strength = MODERATE
                relation = "conjunction"
            elif (state.sign(t_lord) - state.sign(k_lord)) % 12 == 6:
                strength = MODERATE
                relation = "mutual_aspect"
            else:
                continue
            seen.add(key)
            out.append(_yoga(
                "raja", strength, [k_lord, t_lord],
                kendra_house=k_house, trikona_house=t_house, relation=relation,
            ))
    return out


def sunapha_anapha_durudhara(state: ChartState) -> List[PatternMatch]:
    return _around(state, "Moon", "sunapha", "anapha", "durudhara")


def vesi_vosi_ubhayachari(state: ChartState) -> List[PatternMatch]:
    return _around(state, "Sun", "vesi", "vosi", "ubhayachari")


def adhi(state: ChartState) -> List[PatternMatch]:
    if not state.has("Moon"):
        return []
    found = [b for b in ("Jupiter", "Venus", "Mercury") if state.has(b) and state.from_body("Moon", b) in (6, 7, 8)]
    if not found:
        return []
    strength = STRONG if len(found) >= 3 else MODERATE if len(found) == 2 else WEAK
    return [_yoga("adhi", strength, ["Moon"] + found)]


def dhana(state: ChartState) -> List[PatternMatch]:
    out = []
    lord2, lord11 = state.lord(2), state.lord(11)
    if state.has(lord2) and state.has(lord11):
        if state.house(lord2) == 11 or state.house(lord11) == 2:
            strength = STRONG if state.strong_sign(lord2) or state.strong_sign(lord11) else MODERATE
            out.append(_yoga("dhana", strength, [lord2, lord11], variation=1))
        if lord2 != lord11 and state.conjunct(lord2, lord11):
            strength = STRONG if state.strong_sign(lord2) and state.strong_sign(lord11) else MODERATE
            out.append(_yoga("dhana", strength, [lord2, lord11], variation=2))
    if state.has("Jupiter"):
        aspected = [h for h in (2, 11) if state.aspects("Jupiter", state.house_sign(h))]
        if aspected:
            out.append(_yoga("dhana", MODERATE, ["Jupiter"], variation=3, houses=aspected))
    return out


def lakshmi(state: ChartState) -> List[PatternMatch]:
    lord9 = state.lord(9)
    if not state.has(lord9, "Venus"):
        return []
    if state.house(lord9) not in KENDRA or not state.strong_sign("Venus"):
        return []
    strength = STRONG if state.strong_sign(lord9) else MODERATE
    return [_yoga("lakshmi", strength, sorted({lord9, "Venus"}), ninth_lord=lord9)]


def chandra_mangal(state: ChartState) -> List[PatternMatch]:
    if not state.conjunct("Moon", "Mars"):
        return []
    if state.exalted_sign("Moon") or state.exalted_sign("Mars"):
        strength = STRONG
    elif state.debilitated_sign("Moon") or state.debilitated_sign("Mars"):
        strength = WEAK
    else:
        strength = MODERATE
    return [_yoga("chandra_mangal", strength, ["Moon", "Mars"])]


def shubh_kartari(state: ChartState) -> List[PatternMatch]:
    out = []
    for number in (1, 2, 7, 10):
        sign = state.house_sign(number)
        before = [b for b in state.in_sign(sign - 1) if b in NATURAL_BENEFICS]
        after = [b for b in state.in_sign(sign + 1) if b in NATURAL_BENEFICS]
        if before and after:
            out.append(_yoga("shubh_kartari", MODERATE, before + after, house=number))
    return out


def viparita_raja(state: ChartState) -> List[PatternMatch]:
    out = []
    seen = set()
    for a in DUSTHANA:
        for b in DUSTHANA:
            if a >= b:
                continue
            la, lb = state.lord(a), state.lord(b)
            if la == lb or frozenset((la, lb)) in seen or not state.conjunct(la, lb):
                continue
            seen.add(frozenset((la, lb)))
            out.append(_yoga("viparita_raja", MODERATE, [la, lb], houses=[a, b]))
    return out


def neecha_bhanga_raja(state: ChartState) -> List[PatternMatch]:
    out = []
    for body in state.positions:
        if body in NODES or not state.debilitated_sign(body):
            continue
        dispositor = sign_lord(state.sign(body))
        if not state.has(dispositor) or state.house(dispositor) not in KENDRA_TRIKONA:
            continue
        strength = STRONG if state.strong_sign(dispositor) else MODERATE
        out.append(_yoga("neecha_bhanga_raja", strength, [body, dispositor], dispositor_house=state.house(dispositor)))
    return out


def parivartana(state: ChartState) -> List[PatternMatch]:
    out = []
    bodies = [b for b in state.positions if b not in NODES]
    for i, a in enumerate(bodies):
        for b in bodies[i + 1:]:
            sa, sb = state.sign(a), state.sign(b)
            if sa == sb:
                continue
            if sign_lord(sa) == b and sign_lord(sb) == a:
                strength = STRONG if state.strong_sign(a) and state.strong_sign(b) else MODERATE
                out.append(_yoga("parivartana", strength, [a, b]))
    return out


def amala(state: ChartState) -> List[PatternMatch]:
    tenth = state.house_sign(10)
    return [
        _yoga("amala", STRONG if state.strong_sign(b) else MODERATE, [b])
        for b in state.in_sign(tenth)
        if b in NATURAL_BENEFICS
    ]


def parvata(state: ChartState) -> List[PatternMatch]:
    in_kendra = [b for b in ("Jupiter", "Venus") if state.has(b) and state.house(b) in KENDRA]
    if not in_kendra or state.in_house(6) or state.in_house(8):
        return []
    return [_yoga("parvata", MODERATE, in_kendra)]


def kahala(state: ChartState) -> List[PatternMatch]:
    lord4, lord9 = state.lord(4), state.lord(9)
    if not state.has(lord4, lord9):
        return []
    if state.house(lord4) in KENDRA and state.house(lord9) in KENDRA:
        return [_yoga("kahala", MODERATE, sorted({lord4, lord9}))]
    return []


def chamara(state: ChartState) -> List[PatternMatch]:
    lord1 = state.lord(1)
    if not state.has(lord1, "Jupiter") or lord1 == "Jupiter":
        return []
    if state.exalted_sign(lord1) and state.house(lord1) in KENDRA and state.aspects_body("Jupiter", lord1):
        return [_yoga("chamara", STRONG, [lord1, "Jupiter"])]
    return []


def shakata(state: ChartState) -> List[PatternMatch]:
    if not state.has("Moon", "Jupiter"):
        return []
    house = state.from_body("Jupiter", "Moon")
    if house not in (6, 8, 12):
        return []
    return [_yoga(
        "shakata",
        MODERATE,
        ["Moon", "Jupiter"],
        [("Moon in a kendra from lagna", state.house("Moon") in KENDRA)],
        moon_house_from_jupiter=house,
    )]


YOGA_TEMPLATES = (
    mahapurusha,
    gaja_kesari,
    budhaditya,
    raja,
    sunapha_anapha_durudhara,
    adhi,
    dhana,
    lakshmi,
    chandra_mangal,
    shubh_kartari,
    viparita_raja,
    neecha_bhanga_raja,
    parivartana,
    vesi_vosi_ubhayachari,
    amala,
    parvata,
    kahala,
    chamara,
    shakata,
)

YOGA_KINDS = (
    "ruchaka", "bhadra", "hamsa", "malavya", "sasa", "gaja_kesari", "budhaditya", "raja",
    "sunapha", "anapha", "durudhara", "adhi", "dhana", "lakshmi", "chandra_mangal",
    "shubh_kartari", "viparita_raja", "neecha_bhanga_raja", "parivartana", "vesi", "vosi",
    "ubhayachari", "amala", "parvata", "kahala", "chamara", "shakata",
)
