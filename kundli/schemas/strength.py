from pydantic import BaseModel
from typing import Optional, Dict, Any
from .charts import ChartInput


class StrengthComputeRequest(BaseModel):
    chart_input: ChartInput


class StrengthComputeResponse(BaseModel):
    meta: Dict[str, Any]
    status: str
    reason: Optional[str] = None
    detail: Optional[str] = None
    strength: Optional[Dict[str, Dict[str, Any]]] = None


class StrengthBodyRequest(BaseModel):
    chart_input: ChartInput
    body: str


class StrengthBodyResponse(BaseModel):
    meta: Dict[str, Any]
    body: str
    status: str
    reason: Optional[str] = None
    detail: Optional[str] = None
    score: Optional[Dict[str, Any]] = None
