"""
领域异常 → HTTP 异常
"""
import logging
from fastapi import HTTPException, status
from app.accommodation.domain import BookingConflict, NotFoundError, QuoteMismatch

logger = logging.getLogger(__name__)


def http_error(e: ValueError) -> HTTPException:
    """不存在 → 404，冲突/报价变化 → 409，其余校验失败 → 400"""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, BookingConflict):
        logger.warning(f"Booking rejected: {e}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(e), **e.to_dict()},
        )
    if isinstance(e, QuoteMismatch):
        logger.warning(f"Booking rejected: {e}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(e),
                "quoted_total": str(e.quoted),
                "total_price": str(e.actual),
            },
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
