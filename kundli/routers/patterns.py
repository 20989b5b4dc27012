from fastapi import APIRouter

from ..schemas import PatternCheckRequest, PatternCheckResponse, PatternsComputeRequest, PatternsComputeResponse
from ..services.chart import is_pattern_present
from ..services.patterns import summarize
from .charts import build_chart

router = APIRouter(prefix="/v1/patterns", tags=["patterns"])


@router.post("/compute", response_model=PatternsComputeResponse)
def compute_patterns(req: PatternsComputeRequest):
    chart, meta = build_chart(req.chart_input)
    outcome = chart.patterns
    if not outcome.ok:
        return PatternsComputeResponse(meta=meta, status="unavailable", reason=outcome.reason)
    matches = [
        m for m in outcome.value
        if (req.options.category is None or m.category == req.options.category)
        and (req.options.include_cancelled or not m.is_cancelled)
    ]
    return PatternsComputeResponse(
        meta=meta,
        status="resolved",
        patterns=[m.to_dict() for m in matches],
        summary=summarize(matches),
    )


@router.post("/check", response_model=PatternCheckResponse)
def check_pattern(req: PatternCheckRequest):
    chart, meta = build_chart(req.chart_input)
    outcome = is_pattern_present(chart, req.kind)
    kind = req.kind.strip().lower()
    if not outcome.ok:
        return PatternCheckResponse(meta=meta, kind=kind, status="unavailable", reason=outcome.reason)
    matches = [m.to_dict() for m in chart.patterns.value if m.kind == kind]
    return PatternCheckResponse(meta=meta, kind=kind, status="resolved", present=outcome.value, matches=matches)
