from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict, Any, Union


class Place(BaseModel):
    lat: float
    lon: float
    tz: Optional[str] = None  # inferred from lat/lon when missing
    query: Optional[str] = None


class ChartOptions(BaseModel):
    """Per-request overrides of the KUNDLI_* environment defaults."""

    model_config = ConfigDict(extra="forbid")

    ayanamsa: Optional[str] = None
    house_system: Optional[str] = None
    node_type: Optional[str] = None
    dignity_orb: Optional[float] = None
    dasha_horizon_years: Optional[float] = None
    dasha_levels: Optional[int] = None
    kaal_sarp_partial_threshold: Optional[int] = None
    day_model: Optional[str] = None
    vargas: Optional[List[Union[int, str]]] = None


class ChartInput(BaseModel):
    date: str  # YYYY-MM-DD
    time: str  # HH:MM[:SS]
    place: Place
    options: Optional[ChartOptions] = None


class ComputeRequest(ChartInput):
    now: Optional[datetime] = None  # marks active dasha periods


class MetaOut(BaseModel):
    chart_id: str
    engine: str = "kundli-engine"
    engine_version: str
    zodiac: str = "sidereal"
    ayanamsa: str
    house_system: str
    node_type: str
    backend: Optional[str] = None
    jd_ut: float
    utc: str
    warnings: Optional[List[str]] = None
    tz_inferred: bool = False


class ComputeResponse(BaseModel):
    meta: MetaOut
    birth: Dict[str, Any]
    ayanamsa: Dict[str, Any]
    ascendant: Optional[Dict[str, Any]] = None
    houses: Dict[str, Any]
    positions: Dict[str, Dict[str, Any]]
    unavailable: List[str]
    vargas: Dict[str, Dict[str, Any]]
    dashas: Dict[str, Dict[str, Any]]
    strength: Dict[str, Any]
    patterns: Dict[str, Any]
    ashtakavarga: Dict[str, Any]
    karakas: List[Dict[str, Any]]
