"""
房间管理路由
"""
from typing import List
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import RoomCreate, RoomUpdate, RoomResponse, AvailableRoomResponse
from app.services.room_service import RoomService
from app.security.auth import (
    CurrentUser, get_current_user, require_business_user, ensure_business_access,
)
from app.routers.errors import http_error

router = APIRouter(prefix="/businesses/{business_id}/rooms", tags=["房间管理"])


@router.get("", response_model=List[RoomResponse])
def list_rooms(
    business_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """获取商家房间列表"""
    service = RoomService(db)
    try:
        service.get_business(business_id)
    except ValueError as e:
        raise http_error(e)
    return service.get_rooms(business_id)


@router.get("/available", response_model=List[AvailableRoomResponse])
def list_available_rooms(
    business_id: int,
    start_date: date = Query(..., description="入住日期"),
    end_date: date = Query(..., description="离店日期（不含）"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """获取 [start_date, end_date) 内可预订的房间及报价"""
    service = RoomService(db)
    try:
        results = service.get_available_rooms_with_quotes(business_id, start_date, end_date)
    except ValueError as e:
        raise http_error(e)

    return [
        AvailableRoomResponse(
            **RoomResponse.model_validate(room).model_dump(),
            nightly_price=quote.breakdown[0].resolved_price,
            total_price=quote.total,
            nights=quote.nights,
        )
        for room, quote in results
    ]


@router.post("", response_model=RoomResponse)
def create_room(
    business_id: int,
    data: RoomCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """创建房间"""
    ensure_business_access(current_user, business_id)
    try:
        return RoomService(db).create_room(business_id, data)
    except ValueError as e:
        raise http_error(e)


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(
    business_id: int,
    room_id: int,
    data: RoomUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """更新房间"""
    ensure_business_access(current_user, business_id)
    try:
        return RoomService(db).update_room(room_id, data, business_id=business_id)
    except ValueError as e:
        raise http_error(e)


@router.delete("/{room_id}")
def delete_room(
    business_id: int,
    room_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """删除房间"""
    ensure_business_access(current_user, business_id)
    try:
        RoomService(db).delete_room(room_id, business_id=business_id)
        return {"message": "删除成功"}
    except ValueError as e:
        raise http_error(e)
