from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Header

from config import API_KEY_ENV, LOG_LEVEL
from routers.birth import router as birth_router
from routers.iching import router as iching_router
from routers.tarot import router as tarot_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s - %(message)s",
)

logger = logging.getLogger("divination_bridge")


# -----------------------
# Auth
# - Accept BOTH:
#   1) x-api-key: <key>
#   2) Authorization: Bearer <key>
# -----------------------
def require_api_key(authorization: str | None, x_api_key: str | None) -> None:
    expected = os.environ.get(API_KEY_ENV)
    if not expected:
        logger.error("%s is not set; rejecting request", API_KEY_ENV)
        raise HTTPException(status_code=500, detail=f"Server missing {API_KEY_ENV}")

    token: Optional[str] = None

    # Prefer x-api-key if present
    if x_api_key:
        token = x_api_key.strip()

    # Fallback to Authorization: Bearer <token>
    elif authorization:
        token = authorization.removeprefix("Bearer ").strip()

    if not token:
        raise HTTPException(status_code=401, detail="Missing API key")

    if token != expected:
        raise HTTPException(status_code=401, detail="Invalid API key")


def api_key_guard(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None, alias="x-api-key"),
) -> None:
    require_api_key(authorization, x_api_key)


# -----------------------
# App
# -----------------------
app = FastAPI(title="Divination Bridge API", version="1.0.0")


@app.get("/health")
def health():
    return {"ok": True}


for _router in (iching_router, tarot_router, birth_router):
    app.include_router(_router, dependencies=[Depends(api_key_guard)])
