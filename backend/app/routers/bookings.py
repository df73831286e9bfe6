"""
预订管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import (
    BookingCreate, WalkInBookingCreate, BookingStatusUpdate, BookingReschedule, BookingResponse,
)
from app.services.booking_service import BookingService
from app.security.auth import (
    CurrentUser, UserRole, get_current_user, require_business_user, ensure_business_access,
)
from app.accommodation.domain import BookingStatus
from app.routers.errors import http_error

router = APIRouter(prefix="/bookings", tags=["预订管理"])


def _ensure_booking_access(current_user: CurrentUser, booking) -> None:
    """游客只能访问自己的预订，商家用户只能访问本商家的预订"""
    if current_user.role == UserRole.TOURIST:
        if booking.tourist_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="无权访问该预订")
        return
    ensure_business_access(current_user, booking.business_id)


@router.post("", response_model=BookingResponse)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """创建线上预订（游客下单一律为 Pending，待商家确认）"""
    if current_user.role == UserRole.TOURIST:
        data = data.model_copy(update={
            "tourist_id": current_user.id,
            "status": BookingStatus.PENDING,
        })
    else:
        ensure_business_access(current_user, data.business_id)
    try:
        return BookingService(db).create_booking(data)
    except ValueError as e:
        raise http_error(e)


@router.post("/walk-in", response_model=BookingResponse)
def create_walk_in_booking(
    data: WalkInBookingCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """前台散客预订"""
    ensure_business_access(current_user, data.business_id)
    try:
        return BookingService(db).create_walk_in_booking(data)
    except ValueError as e:
        raise http_error(e)


@router.get("/business/{business_id}", response_model=List[BookingResponse])
def list_business_bookings(
    business_id: int,
    status: Optional[BookingStatus] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """获取商家预订列表"""
    ensure_business_access(current_user, business_id)
    return BookingService(db).get_bookings(business_id, status)


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """获取预订详情"""
    try:
        booking = BookingService(db).get_booking_or_raise(booking_id)
    except ValueError as e:
        raise http_error(e)
    _ensure_booking_access(current_user, booking)
    return booking


@router.patch("/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """变更预订状态（游客只能取消自己的预订）"""
    service = BookingService(db)
    try:
        booking = service.get_booking_or_raise(booking_id)
    except ValueError as e:
        raise http_error(e)

    _ensure_booking_access(current_user, booking)
    if current_user.role == UserRole.TOURIST and data.status != BookingStatus.CANCELED:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="权限不足")

    try:
        return service.update_status(booking_id, data)
    except ValueError as e:
        raise http_error(e)


@router.patch("/{booking_id}/dates", response_model=BookingResponse)
def reschedule_booking(
    booking_id: int,
    data: BookingReschedule,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """改期"""
    service = BookingService(db)
    try:
        booking = service.get_booking_or_raise(booking_id)
    except ValueError as e:
        raise http_error(e)

    _ensure_booking_access(current_user, booking)
    try:
        return service.reschedule_booking(booking_id, data)
    except ValueError as e:
        raise http_error(e)
