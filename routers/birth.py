from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.solar_time import build_true_solar_meta, list_known_locations, resolve_location_coordinates
from core.timezones import build_birth_time_meta, format_timezone_offset

router = APIRouter(tags=["birth"])
logger = logging.getLogger("divination_bridge.birth")

Loose = Optional[Union[int, float, str]]


class BirthTimeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    birth_year: Loose = Field(None, examples=[1990])
    birth_month: Loose = Field(None, examples=[5])
    birth_day: Loose = Field(None, examples=[17])
    birth_hour: Loose = Field(None, examples=[14])
    birth_minute: Loose = Field(None, examples=[30])
    timezone: Optional[str] = Field(
        None,
        description="UTC label ('UTC+08:00') or IANA name ('Asia/Shanghai')",
        examples=["Asia/Shanghai"],
    )
    timezone_offset_minutes: Loose = Field(None, examples=[480])
    birth_location: Optional[str] = Field(
        None,
        description="'lat, lng' or a known city name",
        examples=["Shanghai"],
    )


@router.post("/v1/birth/time-meta")
def birth_time_meta(req: BirthTimeRequest) -> Dict[str, Any]:
    payload = req.model_dump(by_alias=True)
    time_meta = build_birth_time_meta(payload)
    true_solar = build_true_solar_meta(payload, time_meta)

    offset = time_meta.timezone_offset_minutes
    resolved = time_meta.to_payload()
    resolved["offsetLabel"] = format_timezone_offset(offset) if offset is not None else None

    logger.info(
        "birth time meta offset=%s solar_applied=%s",
        offset, true_solar.applied,
    )
    return {"timezoneResolved": resolved, "trueSolar": true_solar.to_payload()}


@router.get("/v1/locations")
def locations() -> Dict[str, Any]:
    return {"locations": [entry.to_payload() for entry in list_known_locations()]}


@router.get("/v1/locations/resolve")
def locations_resolve(q: str = Query(..., min_length=1, examples=["Beijing"])) -> Dict[str, Any]:
    location = resolve_location_coordinates(q)
    if location is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return location.to_payload(exclude_none=True)
