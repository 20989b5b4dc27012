from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional, Dict, Any
from .charts import ChartInput


class TransitsOptions(BaseModel):
    at: Optional[datetime] = None  # snapshot instant, defaults to now (UTC)
    from_date: Optional[datetime] = None  # timeline window, both or neither
    to_date: Optional[datetime] = None
    step_days: float = 1.0
    bodies: List[str] = ["Saturn", "Jupiter", "Mars", "Rahu", "Ketu"]


class TransitAspectOut(BaseModel):
    transit_body: str
    natal_body: str
    aspect: str
    nature: Optional[str] = None
    orb: float
    applying: bool
    strength: str


class TransitEventOut(BaseModel):
    kind: str
    body: str
    at: str
    from_sign: Optional[str] = None
    to_sign: Optional[str] = None
    direction: Optional[str] = None


class TransitsComputeRequest(BaseModel):
    chart_input: ChartInput
    options: TransitsOptions = TransitsOptions()


class TransitsComputeResponse(BaseModel):
    meta: Dict[str, Any]
    at: str
    positions: Dict[str, Dict[str, Any]]
    aspects: List[TransitAspectOut]
    windows: List[Dict[str, Any]]
    sade_sati: Dict[str, Any]
    unavailable: List[str] = []
    events: List[TransitEventOut] = []
