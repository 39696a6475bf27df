from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status

from club_manager.core.access import Caller
from club_manager.core.dependencies import require_admin
from club_manager.core.limits import limiter
from club_manager.core.logging_utils import error_tracker

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/error-stats")
@limiter.limit("30/minute")
async def get_error_stats(
    request: Request,
    caller: Caller = Depends(require_admin),
) -> Dict[str, Any]:
    """Error counters collected since startup"""
    return error_tracker.get_stats()


@router.delete("/error-stats", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def reset_error_stats(
    request: Request,
    caller: Caller = Depends(require_admin),
):
    error_tracker.reset_stats()
