import time

from fastapi import APIRouter

router = APIRouter()


@router.api_route("/", methods=["GET", "HEAD"])
@router.api_route("/health", methods=["GET", "HEAD"])
async def health():
    """Liveness probe. No upstream contact, no allowlist check."""
    return {"ok": True, "ts": int(time.time() * 1000)}
