import logging

from fastapi import APIRouter, Header, HTTPException

from hostel.dependencies import LifecycleDep, SettingsDep
from hostel.schemas.lifecycle import ExpireResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


@router.post("/expire-bookings", response_model=ExpireResult)
async def expire_bookings(
    manager: LifecycleDep,
    settings: SettingsDep,
    authorization: str | None = Header(default=None),
) -> ExpireResult:
    # Open when no secret is configured (local development)
    if settings.cron_secret and authorization != f"Bearer {settings.cron_secret}":
        logger.warning("Rejected expire-bookings call with bad credentials")
        raise HTTPException(status_code=401, detail="Unauthorized")

    result = await manager.expire_pending()
    logger.info("Expire-bookings run cancelled %d bookings", result.expired_count)
    return result
