from fastapi import APIRouter

from ..schemas import VargaComputeRequest, VargaComputeResponse
from ..services.chart import varga
from ..services.vargas import parse_division
from .charts import build_chart

router = APIRouter(prefix="/v1/vargas", tags=["vargas"])


@router.post("/compute", response_model=VargaComputeResponse)
def compute_vargas(req: VargaComputeRequest):
    divisions = [parse_division(d) for d in req.divisions]
    chart, meta = build_chart(req.chart_input)
    charts = {f"D{d}": varga(chart, d).to_dict() for d in divisions}
    return VargaComputeResponse(meta=meta, charts=charts)
