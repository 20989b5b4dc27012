from pydantic import BaseModel
from typing import Optional, List, Literal, Dict, Any
from .charts import ChartInput


class PatternOptions(BaseModel):
    category: Optional[Literal["yoga", "dosha"]] = None
    include_cancelled: bool = True


class PatternsComputeRequest(BaseModel):
    chart_input: ChartInput
    options: PatternOptions = PatternOptions()


class PatternsComputeResponse(BaseModel):
    meta: Dict[str, Any]
    status: str
    reason: Optional[str] = None
    patterns: List[Dict[str, Any]] = []
    summary: Dict[str, int] = {}


class PatternCheckRequest(BaseModel):
    chart_input: ChartInput
    kind: str


class PatternCheckResponse(BaseModel):
    meta: Dict[str, Any]
    kind: str
    status: str
    reason: Optional[str] = None
    present: Optional[bool] = None
    matches: List[Dict[str, Any]] = []
