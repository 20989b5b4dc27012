from pydantic import BaseModel
from typing import List, Dict, Any, Union
from .charts import ChartInput


class VargaComputeRequest(BaseModel):
    chart_input: ChartInput
    divisions: List[Union[int, str]] = ["D9"]


class VargaComputeResponse(BaseModel):
    meta: Dict[str, Any]
    charts: Dict[str, Dict[str, Any]]
