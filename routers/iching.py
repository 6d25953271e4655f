from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from dateutil import tz
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, model_validator

from core.hexagrams import (
    cast_reading,
    derive_changing_lines_from_numbers,
    derive_changing_lines_from_time_context,
    list_hexagrams,
)
from core.timezones import normalize_timezone
from core.trigrams import list_trigrams

router = APIRouter(tags=["iching"])
logger = logging.getLogger("divination_bridge.iching")


# =========================================================
# Request schema
# =========================================================
class DivineRequest(BaseModel):
    method: Literal["number", "time"] = Field("number", examples=["number"])
    numbers: Optional[List[int]] = Field(
        None,
        description="Three drawn numbers (number method): upper trigram, lower trigram, line seed",
        examples=[[3, 8, 5]],
    )
    timezone: Optional[str] = Field(
        None,
        description="IANA zone used to read the clock for the time method",
        examples=["Asia/Shanghai"],
    )

    @model_validator(mode="after")
    def _check_numbers(self):
        if self.method == "number" and (self.numbers is None or len(self.numbers) != 3):
            raise ValueError("Provide three numbers for number divination.")
        return self


def _time_context(tz_name: str) -> Dict[str, Any]:
    now = datetime.now(tz.gettz(tz_name))
    return {
        "year": now.year,
        "month": now.month,
        "day": now.day,
        "hour": now.hour,
        "minute": now.minute,
        "timezone": tz_name,
        "iso": now.isoformat(),
    }


# =========================================================
# API endpoints
# =========================================================
@router.get("/v1/iching/trigrams")
def iching_trigrams() -> Dict[str, Any]:
    return {"trigrams": [t.to_payload() for t in list_trigrams()]}


@router.get("/v1/iching/hexagrams")
def iching_hexagrams() -> Dict[str, Any]:
    return {"hexagrams": [h.to_payload() for h in list_hexagrams()]}


@router.post("/v1/iching/divine")
def iching_divine(req: DivineRequest) -> Dict[str, Any]:
    time_context: Optional[Dict[str, Any]] = None

    if req.method == "time":
        time_context = _time_context(normalize_timezone(req.timezone))
        ymd = time_context["year"] + time_context["month"] + time_context["day"]
        hm = time_context["hour"] + time_context["minute"]
        numbers = [ymd, hm, ymd + hm]
        changing_lines = derive_changing_lines_from_time_context(time_context)
    else:
        numbers = list(req.numbers or [])
        changing_lines = derive_changing_lines_from_numbers(numbers)

    reading = cast_reading(numbers[0], numbers[1], changing_lines)
    if reading is None:
        raise HTTPException(status_code=400, detail="Unable to compute a hexagram from the provided numbers.")

    logger.info(
        "iching divine method=%s hexagram=%s changing=%s",
        req.method, reading.hexagram.number, list(reading.changing_lines),
    )
    out = reading.to_payload()
    out["method"] = req.method
    out["numbers"] = numbers
    out["timeContext"] = time_context
    return out
