from fastapi import APIRouter

from ..schemas import StrengthBodyRequest, StrengthBodyResponse, StrengthComputeRequest, StrengthComputeResponse
from ..services.chart import strength_of
from .charts import build_chart

router = APIRouter(prefix="/v1/strength", tags=["strength"])


@router.post("/compute", response_model=StrengthComputeResponse)
def compute_strength(req: StrengthComputeRequest):
    chart, meta = build_chart(req.chart_input)
    meta["day_model"] = chart.config.day_model
    outcome = chart.strength
    if not outcome.ok:
        return StrengthComputeResponse(meta=meta, status="unavailable", reason=outcome.reason, detail=outcome.detail)
    table = {body: score.to_dict() for body, score in outcome.value.items()}
    return StrengthComputeResponse(meta=meta, status="resolved", strength=table)


@router.post("/body", response_model=StrengthBodyResponse)
def body_strength(req: StrengthBodyRequest):
    chart, meta = build_chart(req.chart_input)
    outcome = strength_of(chart, req.body)
    if not outcome.ok:
        return StrengthBodyResponse(
            meta=meta, body=req.body, status="unavailable", reason=outcome.reason, detail=outcome.detail
        )
    return StrengthBodyResponse(meta=meta, body=req.body, status="resolved", score=outcome.value.to_dict())
