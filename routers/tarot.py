from __future__ import annotations

import logging
import random
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter
from pydantic import AliasChoices, BaseModel, Field

from core.tarot import DEFAULT_SPREAD, draw_tarot, list_tarot_spreads, seeded_rng
from core.tarot_deck import TAROT_DECK

router = APIRouter(tags=["tarot"])
logger = logging.getLogger("divination_bridge.tarot")


class DrawRequest(BaseModel):
    spread_type: Optional[str] = Field(
        DEFAULT_SPREAD,
        validation_alias=AliasChoices("spreadType", "spread_type"),
        examples=["ThreeCard"],
    )
    # same seed, same draw
    seed: Optional[Union[int, str]] = Field(None, examples=["2024-12-25 reading"])


@router.get("/v1/tarot/cards")
def tarot_cards() -> Dict[str, Any]:
    return {"cards": [card.to_payload() for card in TAROT_DECK]}


@router.get("/v1/tarot/spreads")
def tarot_spreads() -> Dict[str, Any]:
    return {
        "spreads": [
            {"spreadType": name, **spread.to_payload()}
            for name, spread in list_tarot_spreads()
        ]
    }


@router.post("/v1/tarot/draw")
def tarot_draw(req: DrawRequest) -> Dict[str, Any]:
    rng = seeded_rng(req.seed) if req.seed is not None else random.random
    result = draw_tarot(spread_type=req.spread_type or DEFAULT_SPREAD, rng=rng)
    logger.info("tarot draw spread=%s seeded=%s", result.spread_type, req.seed is not None)
    return result.to_payload()
