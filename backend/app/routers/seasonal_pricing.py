"""
季节定价路由
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import (
    SeasonalPricingCreate, SeasonalPricingUpdate, SeasonalPricingUpsert,
    SeasonalPricingResponse, NightlyPriceResponse, PriceRangeResponse, PriceRangeSummary,
)
from app.services.seasonal_pricing_service import SeasonalPricingService
from app.security.auth import (
    CurrentUser, get_current_user, require_business_user, ensure_business_access,
)
from app.accommodation.domain import Weekday
from app.routers.errors import http_error

router = APIRouter(prefix="/seasonal-pricing", tags=["季节定价"])


@router.get("/business/{business_id}", response_model=List[SeasonalPricingResponse])
def list_business_pricing(
    business_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """获取商家所有生效的季节定价"""
    service = SeasonalPricingService(db)
    return [service.to_response(p) for p in service.get_by_business(business_id)]


@router.get("/room/{room_id}", response_model=Optional[SeasonalPricingResponse])
def get_room_pricing(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """获取房间生效的季节定价（未配置返回 null）"""
    service = SeasonalPricingService(db)
    pricing = service.get_active_for_room(room_id)
    return service.to_response(pricing) if pricing else None


@router.get("/room/{room_id}/price", response_model=NightlyPriceResponse)
def get_price_for_date(
    room_id: int,
    date: date = Query(..., description="入住当晚日期"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """计算某一晚的价格"""
    try:
        rate = SeasonalPricingService(db).calculate_price_for_date(room_id, date)
    except ValueError as e:
        raise http_error(e)
    return NightlyPriceResponse(
        date=date,
        weekday_name=Weekday.of(date).value,
        price=rate.price,
        tier=rate.tier.value,
    )


@router.get("/room/{room_id}/price-range", response_model=PriceRangeResponse)
def get_price_for_range(
    room_id: int,
    start_date: date = Query(..., description="入住日期"),
    end_date: date = Query(..., description="离店日期（不含）"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """计算日期段逐晚价格与总价"""
    try:
        quote = SeasonalPricingService(db).calculate_price_for_range(room_id, start_date, end_date)
    except ValueError as e:
        raise http_error(e)
    return PriceRangeResponse(
        breakdown=[NightlyPriceResponse(**entry.to_dict()) for entry in quote.breakdown],
        summary=PriceRangeSummary(
            total_price=quote.total,
            nights=quote.nights,
            check_in=quote.check_in,
            check_out=quote.check_out,
        ),
    )


@router.get("/{pricing_id}", response_model=SeasonalPricingResponse)
def get_pricing(
    pricing_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """获取季节定价详情"""
    service = SeasonalPricingService(db)
    try:
        return service.to_response(service.get_pricing_or_raise(pricing_id))
    except ValueError as e:
        raise http_error(e)


@router.post("", response_model=SeasonalPricingResponse)
def create_pricing(
    data: SeasonalPricingCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """创建季节定价"""
    ensure_business_access(current_user, data.business_id)
    service = SeasonalPricingService(db)
    try:
        return service.to_response(service.create_pricing(data))
    except ValueError as e:
        raise http_error(e)


@router.put("/upsert", response_model=SeasonalPricingResponse)
def upsert_pricing(
    data: SeasonalPricingUpsert,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """按房间创建或更新季节定价"""
    ensure_business_access(current_user, data.business_id)
    service = SeasonalPricingService(db)
    try:
        return service.to_response(service.upsert_pricing(data))
    except ValueError as e:
        raise http_error(e)


@router.put("/{pricing_id}", response_model=SeasonalPricingResponse)
def update_pricing(
    pricing_id: int,
    data: SeasonalPricingUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """更新季节定价"""
    service = SeasonalPricingService(db)
    try:
        pricing = service.get_pricing_or_raise(pricing_id)
        ensure_business_access(current_user, pricing.business_id)
        return service.to_response(service.update_pricing(pricing_id, data))
    except ValueError as e:
        raise http_error(e)


@router.delete("/{pricing_id}")
def delete_pricing(
    pricing_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_business_user)
):
    """删除季节定价"""
    service = SeasonalPricingService(db)
    try:
        pricing = service.get_pricing_or_raise(pricing_id)
        ensure_business_access(current_user, pricing.business_id)
        service.delete_pricing(pricing_id)
        return {"message": "删除成功"}
    except ValueError as e:
        raise http_error(e)
