"""Engine configuration.

Defaults come from the environment (``KUNDLI_*`` variables, ``.env`` loaded by
the app); per-request ``options`` override them through :meth:`EngineConfig.merge`.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .ayanamsa import canonical_variant
from .dashas import MIN_HORIZON_YEARS
from .ephem import NODE_CODES
from .errors import ConfigurationError
from .houses import canonical_system
from .shadbala import DAY_MODELS
from .vargas import parse_division

DEFAULT_VARGAS = (1, 9, 10)


def _parse_vargas(value: Any) -> Tuple[int, ...]:
    if isinstance(value, str):
        value = [v for v in value.replace(" ", "").split(",") if v]
    divisions = []
    for item in value or ():
        div = parse_division(item)
        if div not in divisions:
            divisions.append(div)
    return tuple(divisions)


def _number(name: str, value: Any, kind=float):
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None


@dataclass(slots=True)
class EngineConfig:
    ayanamsa: str = "lahiri"
    house_system: str = "whole_sign"
    node_type: str = "mean"
    dignity_orb: float = 5.0
    dasha_horizon_years: float = 120.0
    dasha_levels: int = 3
    kaal_sarp_partial_threshold: int = 5
    day_model: str = "sunrise"
    vargas: Sequence[int] = DEFAULT_VARGAS
    max_workers: int = 4

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> "EngineConfig":
        self.ayanamsa = canonical_variant(self.ayanamsa)
        self.house_system = canonical_system(self.house_system)
        self.node_type = str(self.node_type).lower()
        if self.node_type not in NODE_CODES:
            raise ConfigurationError(f"unknown node type: {self.node_type}")
        self.day_model = str(self.day_model).lower()
        if self.day_model not in DAY_MODELS:
            raise ConfigurationError(f"unknown day model: {self.day_model}")

        self.dignity_orb = _number("dignity_orb", self.dignity_orb)
        if not 0.0 <= self.dignity_orb <= 30.0:
            raise ConfigurationError("dignity_orb must be within 0..30 degrees")
        # shorter horizons are clamped up so the tree always covers a lifetime
        self.dasha_horizon_years = max(
            _number("dasha_horizon_years", self.dasha_horizon_years), float(MIN_HORIZON_YEARS)
        )
        self.dasha_levels = _number("dasha_levels", self.dasha_levels, int)
        if self.dasha_levels < 1:
            raise ConfigurationError("dasha_levels must be at least 1")
        self.kaal_sarp_partial_threshold = _number(
            "kaal_sarp_partial_threshold", self.kaal_sarp_partial_threshold, int
        )
        if not 1 <= self.kaal_sarp_partial_threshold <= 7:
            raise ConfigurationError("kaal_sarp_partial_threshold must be within 1..7")
        self.max_workers = _number("max_workers", self.max_workers, int)
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        self.vargas = _parse_vargas(self.vargas)
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        return cls(
            ayanamsa=env.get("KUNDLI_AYANAMSA", "lahiri"),
            house_system=env.get("KUNDLI_HOUSE_SYSTEM", "whole_sign"),
            node_type=env.get("KUNDLI_NODE_TYPE", "mean"),
            dignity_orb=env.get("KUNDLI_DIGNITY_ORB", "5"),
            dasha_horizon_years=env.get("KUNDLI_DASHA_HORIZON_YEARS", "120"),
            dasha_levels=env.get("KUNDLI_DASHA_LEVELS", "3"),
            kaal_sarp_partial_threshold=env.get("KUNDLI_KAAL_SARP_PARTIAL_THRESHOLD", "5"),
            day_model=env.get("KUNDLI_DAY_MODEL", "sunrise"),
            vargas=env.get("KUNDLI_VARGAS", "D1,D9,D10"),
            max_workers=env.get("KUNDLI_MAX_WORKERS", "4"),
        )

    def merge(self, options: Optional[Mapping[str, Any]]) -> "EngineConfig":
        """Copy with per-request overrides applied; unknown keys are rejected."""

        if not options:
            return dataclasses.replace(self)
        known = {f.name for f in dataclasses.fields(self)}
        overrides: Dict[str, Any] = {}
        for key, value in options.items():
            if value is None:
                continue
            if key not in known:
                raise ConfigurationError(f"unknown option: {key}")
            overrides[key] = value
        return dataclasses.replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["vargas"] = [f"D{d}" for d in self.vargas]
        return data


__all__ = ["DEFAULT_VARGAS", "EngineConfig"]
