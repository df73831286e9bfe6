"""
封房管理路由
"""
from typing import List
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import (
    BlockedDateCreate, BulkBlockedDateCreate, BlockedDateResponse,
    BulkBlockResponse, RoomAvailabilityResponse,
)
from app.services.blocked_date_service import BlockedDateService
from app.services.room_service import RoomService
from app.security.auth import (
    CurrentUser, get_current_user, require_business_user, ensure_business_access,
)
from app.accommodation.domain import BlockNotFound
from app.routers.errors import http_error

router = APIRouter(prefix="/blocked-dates", tags=["封房管理"])


@router.post("", response_model=BlockedDateResponse)
def block_dates(
    data: BlockedDateCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """封房"""
    ensure_business_access(current_user, data.business_id)
    try:
        return BlockedDateService(db).create_block(data, created_by=current_user.id)
    except ValueError as e:
        raise http_error(e)


@router.post("/bulk", response_model=BulkBlockResponse)
def bulk_block_dates(
    data: BulkBlockedDateCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """批量封房"""
    ensure_business_access(current_user, data.business_id)
    return BlockedDateService(db).bulk_block(data, created_by=current_user.id)


@router.delete("/{block_id}")
def unblock_dates(
    block_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """解封"""
    service = BlockedDateService(db)
    block = service.get_block(block_id)
    if not block:
        raise http_error(BlockNotFound(block_id))
    ensure_business_access(current_user, block.business_id)
    try:
        service.delete_block(block_id)
        return {"message": "删除成功"}
    except ValueError as e:
        raise http_error(e)


@router.get("/room/{room_id}", response_model=List[BlockedDateResponse])
def list_room_blocks(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """获取房间封房记录"""
    try:
        room = RoomService(db).get_room_or_raise(room_id)
    except ValueError as e:
        raise http_error(e)
    ensure_business_access(current_user, room.business_id)
    return BlockedDateService(db).get_room_blocks(room_id)


@router.get("/business/{business_id}", response_model=List[BlockedDateResponse])
def list_business_blocks(
    business_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """获取商家封房记录"""
    ensure_business_access(current_user, business_id)
    return BlockedDateService(db).get_business_blocks(business_id)


@router.get("/room/{room_id}/availability", response_model=RoomAvailabilityResponse)
def check_room_availability(
    room_id: int,
    start_date: date = Query(..., description="开始日期"),
    end_date: date = Query(..., description="结束日期（不含）"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """检查房间在日期段内是否可订"""
    try:
        availability = BlockedDateService(db).check_room_availability(room_id, start_date, end_date)
    except ValueError as e:
        raise http_error(e)
    return RoomAvailabilityResponse(
        room_id=room_id,
        start_date=start_date,
        end_date=end_date,
        availability_status=availability,
    )
