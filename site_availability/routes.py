import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from .availability import AvailabilityEngine
from .config import build_options, options_from_settings
from .errors import AvailabilityError
from .models import AvailabilityOptions, AvailabilityRequest, AvailabilityResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def get_engine() -> AvailabilityEngine:
    return AvailabilityEngine(options_from_settings())


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/options", response_model=AvailabilityOptions, response_model_by_alias=False)
async def options(engine: AvailabilityEngine = Depends(get_engine)):
    return engine.options


@router.post("/availability", response_model=AvailabilityResponse)
async def availability(body: AvailabilityRequest, engine: AvailabilityEngine = Depends(get_engine)):
    try:
        if body.options:
            engine = AvailabilityEngine(build_options(body.options, base=engine.options))
        available = engine.check_availability(
            body.start,
            body.end,
            body.reservations,
            site_ids=body.site_ids,
        )
    except AvailabilityError as e:
        logger.warning("Rejected availability request %s..%s (%s: %s)", body.start, body.end, type(e).__name__, e)
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Availability %s..%s: %d reservations -> %d sites", body.start, body.end, len(body.reservations), len(available))
    return AvailabilityResponse(start=body.start, end=body.end, available=available)
