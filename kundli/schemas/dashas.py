from datetime import datetime
from pydantic import BaseModel
from typing import Optional, List, Literal, Dict, Any
from .charts import ChartInput

System = Literal["vimshottari", "ashtottari", "yogini", "chara"]


class DashaOptions(BaseModel):
    systems: List[System] = ["vimshottari", "ashtottari", "yogini", "chara"]
    levels: Optional[int] = None  # defaults to the chart's dasha_levels
    now: Optional[datetime] = None


class DashaComputeRequest(BaseModel):
    chart_input: ChartInput
    options: DashaOptions = DashaOptions()


class DashaComputeResponse(BaseModel):
    meta: Dict[str, Any]
    timelines: Dict[str, Dict[str, Any]]


class DashaActiveRequest(BaseModel):
    chart_input: ChartInput
    system: System = "vimshottari"
    at: datetime


class DashaPeriodOut(BaseModel):
    level: int
    level_name: Optional[str] = None
    ruler: str
    lord: str
    start: str
    end: str


class DashaActiveResponse(BaseModel):
    meta: Dict[str, Any]
    system: str
    at: str
    status: str
    reason: Optional[str] = None
    chain: List[DashaPeriodOut] = []
