from fastapi import APIRouter, Body

from ..schemas import CompatibilityComputeRequest, CompatibilityComputeResponse
from ..services.synastry import compatibility
from .charts import EXAMPLE_INPUT, build_chart

router = APIRouter(prefix="/v1/compatibility", tags=["compatibility"])


@router.post("/compute", response_model=CompatibilityComputeResponse)
def compute_compat(
    req: CompatibilityComputeRequest = Body(
        ...,
        example={
            "person_a": EXAMPLE_INPUT,
            "person_b": {
                "date": "1991-03-07",
                "time": "09:15:00",
                "place": {"lat": 28.6139, "lon": 77.2090, "tz": "Asia/Kolkata"},
            },
            "options": {"include_composite": True},
        },
    )
):
    chart_a, meta_a = build_chart(req.person_a)
    chart_b, meta_b = build_chart(req.person_b)
    report = compatibility(chart_a.positions, chart_b.positions)
    out = report.to_dict()
    return CompatibilityComputeResponse(
        meta={
            "chart_a": meta_a["chart_id"],
            "chart_b": meta_b["chart_id"],
            "unavailable_a": list(chart_a.unavailable),
            "unavailable_b": list(chart_b.unavailable),
        },
        synastry=out["aspects"],
        score=out["score"],
        doshas=out["doshas"],
        composite=out["composite"] if req.options.include_composite else None,
    )
