from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Body

from ..schemas import ChartInput, ComputeRequest, ComputeResponse
from ..services import ephem
from ..services.chart import BirthData, ChartResult, compute_chart
from ..services.settings import EngineConfig
from ..services.util.place import normalize_place

router = APIRouter(prefix="/v1/charts", tags=["charts"])

EXAMPLE_INPUT = {
    "date": "1990-08-18",
    "time": "14:32:00",
    "place": {"lat": 17.385, "lon": 78.4867, "tz": "Asia/Kolkata"},
    "options": {"ayanamsa": "lahiri", "house_system": "whole_sign"},
}


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def engine_config(ci: ChartInput) -> EngineConfig:
    options = ci.options.model_dump(exclude_none=True) if ci.options else None
    return EngineConfig.from_env().merge(options)


def build_chart(ci: ChartInput, now: Optional[datetime] = None) -> Tuple[ChartResult, Dict[str, Any]]:
    """Normalise the request, compute the chart and return it with its meta."""

    place, flags = normalize_place(ci.place.model_dump())
    config = engine_config(ci)
    provider = ephem.default_provider(config.node_type)
    birth = BirthData(date=ci.date, time=ci.time, tz=place["tz"], lat=place["lat"], lon=place["lon"])
    chart = compute_chart(provider, birth, config, now=as_utc(now))
    meta = dict(chart.meta)
    meta.update(flags)
    return chart, meta


@router.post("/compute", response_model=ComputeResponse)
def compute(req: ComputeRequest = Body(..., example=EXAMPLE_INPUT)):
    chart, meta = build_chart(req, now=req.now)
    out = chart.to_dict()
    out["meta"] = meta
    return out
