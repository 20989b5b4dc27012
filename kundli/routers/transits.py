from datetime import datetime, timezone

from fastapi import APIRouter

from ..schemas import TransitsComputeRequest, TransitsComputeResponse
from ..services import ephem
from ..services.errors import ConfigurationError
from ..services.transits import compute_transits, transit_timeline
from .charts import as_utc, build_chart

router = APIRouter(prefix="/v1/transits", tags=["transits"])


@router.post("/compute", response_model=TransitsComputeResponse)
def compute_transits_endpoint(req: TransitsComputeRequest):
    opts = req.options
    if (opts.from_date is None) != (opts.to_date is None):
        raise ConfigurationError("from_date and to_date must be given together")
    chart, meta = build_chart(req.chart_input)
    provider = ephem.default_provider(chart.config.node_type)
    at = as_utc(opts.at) or datetime.now(timezone.utc).replace(microsecond=0)

    report = compute_transits(provider, chart.positions, at, chart.config.ayanamsa, opts.bodies)
    out = report.to_dict()
    if opts.from_date is not None:
        events = transit_timeline(
            provider,
            as_utc(opts.from_date),
            as_utc(opts.to_date),
            chart.config.ayanamsa,
            opts.bodies,
            step_days=opts.step_days,
            max_workers=chart.config.max_workers,
        )
        out["events"] = [e.to_dict() for e in events]
    meta["transit_bodies"] = list(opts.bodies)
    return TransitsComputeResponse(meta=meta, **out)
