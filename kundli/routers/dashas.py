from fastapi import APIRouter

from ..schemas import DashaActiveRequest, DashaActiveResponse, DashaComputeRequest, DashaComputeResponse
from ..services.chart import active_dasha_chain
from ..services.dasha_systems import compute_dasha
from ..services.errors import attempt
from .charts import as_utc, build_chart

router = APIRouter(prefix="/v1/dashas", tags=["dashas"])


@router.post("/compute", response_model=DashaComputeResponse)
def compute_dashas(req: DashaComputeRequest):
    now = as_utc(req.options.now)
    chart, meta = build_chart(req.chart_input, now=now)
    timelines = {}
    for system in req.options.systems:
        if req.options.levels is None:
            outcome = chart.dashas[system]
        else:
            # explicit levels are validated against the system's depth
            outcome = attempt(
                f"dasha_{system}",
                compute_dasha,
                system,
                chart.positions,
                chart.ascendant,
                chart.birth.utc_datetime(),
                now=now,
                levels=req.options.levels,
                horizon_years=chart.config.dasha_horizon_years,
            )
        timelines[system] = outcome.to_dict()
    meta["levels"] = req.options.levels or chart.config.dasha_levels
    return DashaComputeResponse(meta=meta, timelines=timelines)


@router.post("/active", response_model=DashaActiveResponse)
def active(req: DashaActiveRequest):
    at = as_utc(req.at)
    chart, meta = build_chart(req.chart_input)
    outcome = active_dasha_chain(chart, req.system, at)
    if not outcome.ok:
        return DashaActiveResponse(
            meta=meta, system=req.system, at=at.isoformat(), status="unavailable", reason=outcome.reason
        )
    chain = []
    for period in outcome.value:
        item = period.to_dict()
        item.pop("children", None)
        chain.append(item)
    return DashaActiveResponse(meta=meta, system=req.system, at=at.isoformat(), status="resolved", chain=chain)
