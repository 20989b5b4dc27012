from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from .charts import ChartInput


class CompatibilityOptions(BaseModel):
    include_composite: bool = True


class SynAspect(BaseModel):
    p1: str
    p2: str
    type: str
    nature: str
    orb: float
    weight: float


class CompositePoint(BaseModel):
    name: str
    lon: float
    sign: str
    separation: float


class CompatibilityComputeRequest(BaseModel):
    person_a: ChartInput
    person_b: ChartInput
    options: CompatibilityOptions = CompatibilityOptions()


class CompatibilityComputeResponse(BaseModel):
    meta: Dict[str, Any]
    synastry: List[SynAspect]
    score: float
    doshas: List[Dict[str, Any]]
    composite: Optional[List[CompositePoint]] = None
