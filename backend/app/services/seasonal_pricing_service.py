"""
季节定价服务 - 本体操作层
管理 SeasonalPricing 对象，并向价格解析器提供每个房间唯一的生效配置
"""
from typing import Callable, Dict, Iterable, List, Optional
from datetime import date
import logging
from sqlalchemy.orm import Session
from app.models.ontology import Room, SeasonalPricing
from app.models.schemas import (
    SeasonalPricingCreate, SeasonalPricingUpdate, SeasonalPricingUpsert,
)
from app.models.events import EventType, SeasonalPricingChangedData
from app.services.event_bus import Event, publish_event
from app.accommodation.domain import (
    NightlyRate, SeasonalRuleSet, StayQuote, PricingNotFound, RoomNotFound,
    compute_stay_price, resolve_nightly_price,
)

logger = logging.getLogger(__name__)

# 允许显式置空的字段（base_price 必填，置空视为保持不变）
_NULLABLE_FIELDS = {
    "weekend_price", "weekend_days",
    "peak_season_price", "peak_season_months",
    "high_season_price", "high_season_months",
    "low_season_price", "low_season_months",
}


class SeasonalPricingService:
    """季节定价服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publisher = event_publisher

    # ============== 查询 ==============

    def get_pricing(self, pricing_id: int) -> Optional[SeasonalPricing]:
        return self.db.query(SeasonalPricing).filter(SeasonalPricing.id == pricing_id).first()

    def get_pricing_or_raise(self, pricing_id: int) -> SeasonalPricing:
        pricing = self.get_pricing(pricing_id)
        if not pricing:
            raise PricingNotFound(pricing_id)
        return pricing

    def get_by_business(self, business_id: int) -> List[SeasonalPricing]:
        """获取商家所有生效的季节定价"""
        return self.db.query(SeasonalPricing).filter(
            SeasonalPricing.business_id == business_id,
            SeasonalPricing.is_active == True
        ).order_by(SeasonalPricing.created_at.desc(), SeasonalPricing.id.desc()).all()

    def get_active_for_room(self, room_id: int) -> Optional[SeasonalPricing]:
        """获取房间的生效配置，未配置时返回 None（不是错误）"""
        return self.db.query(SeasonalPricing).filter(
            SeasonalPricing.room_id == room_id,
            SeasonalPricing.is_active == True
        ).order_by(SeasonalPricing.id.desc()).first()

    def get_rule_set(self, room_id: int) -> Optional[SeasonalRuleSet]:
        pricing = self.get_active_for_room(room_id)
        return pricing.to_rule_set() if pricing else None

    def get_rule_sets(self, room_ids: Iterable[int]) -> Dict[int, SeasonalRuleSet]:
        """批量读取多个房间的生效配置"""
        room_ids = list(room_ids)
        if not room_ids:
            return {}
        rows = self.db.query(SeasonalPricing).filter(
            SeasonalPricing.room_id.in_(room_ids),
            SeasonalPricing.is_active == True
        ).order_by(SeasonalPricing.id.desc()).all()
        result: Dict[int, SeasonalRuleSet] = {}
        for row in rows:
            result.setdefault(row.room_id, row.to_rule_set())
        return result

    # ============== 写操作 ==============

    def _get_room(self, room_id: int, business_id: int) -> Room:
        room = self.db.query(Room).filter(Room.id == room_id).first()
        if not room or room.business_id != business_id:
            raise RoomNotFound(room_id)
        return room

    def _deactivate_others(self, room_id: int, keep_id: Optional[int]) -> None:
        """保证每个房间最多一个生效配置"""
        query = self.db.query(SeasonalPricing).filter(
            SeasonalPricing.room_id == room_id,
            SeasonalPricing.is_active == True
        )
        if keep_id is not None:
            query = query.filter(SeasonalPricing.id != keep_id)
        for other in query.all():
            other.is_active = False
            logger.info(f"Seasonal pricing {other.id} deactivated for room {room_id}")

    def _apply(self, pricing: SeasonalPricing, values: dict) -> None:
        for key, value in values.items():
            if key in ("business_id", "room_id"):
                continue
            if value is None and key not in _NULLABLE_FIELDS:
                continue
            if key in SeasonalPricing.LIST_FIELDS:
                pricing.set_list(key, value)
            else:
                setattr(pricing, key, value)

    def _publish(self, pricing: SeasonalPricing, action: str) -> None:
        self._publish_data(SeasonalPricingChangedData(
            pricing_id=pricing.id,
            business_id=pricing.business_id,
            room_id=pricing.room_id,
            action=action,
            is_active=bool(pricing.is_active),
        ))

    def _publish_data(self, data: SeasonalPricingChangedData) -> None:
        publish_event(
            EventType.SEASONAL_PRICING_CHANGED, data,
            source="seasonal_pricing_service",
            publisher=self._publisher,
        )

    def create_pricing(self, data: SeasonalPricingCreate) -> SeasonalPricing:
        """创建季节定价"""
        self._get_room(data.room_id, data.business_id)

        pricing = SeasonalPricing(
            business_id=data.business_id,
            room_id=data.room_id,
            base_price=data.base_price,
            is_active=data.is_active,
        )
        self._apply(pricing, data.model_dump(exclude={"base_price", "is_active"}))
        self.db.add(pricing)
        self.db.flush()
        if pricing.is_active:
            self._deactivate_others(pricing.room_id, keep_id=pricing.id)

        self.db.commit()
        self.db.refresh(pricing)
        logger.info(f"Seasonal pricing {pricing.id} created for room {pricing.room_id}")
        self._publish(pricing, "created")
        return pricing

    def update_pricing(self, pricing_id: int, data: SeasonalPricingUpdate) -> SeasonalPricing:
        """更新季节定价（未出现的字段保持不变）"""
        pricing = self.get_pricing_or_raise(pricing_id)
        self._apply(pricing, data.model_dump(exclude_unset=True))
        if pricing.is_active:
            self._deactivate_others(pricing.room_id, keep_id=pricing.id)

        self.db.commit()
        self.db.refresh(pricing)
        logger.info(f"Seasonal pricing {pricing.id} updated")
        self._publish(pricing, "updated")
        return pricing

    def upsert_pricing(self, data: SeasonalPricingUpsert) -> SeasonalPricing:
        """按房间更新生效配置，不存在时创建"""
        self._get_room(data.room_id, data.business_id)
        existing = self.get_active_for_room(data.room_id)

        if existing:
            return self.update_pricing(
                existing.id, SeasonalPricingUpdate(**data.model_dump(
                    exclude_unset=True, exclude={"business_id", "room_id"}
                ))
            )

        if data.base_price is None:
            raise ValueError("base_price 为必填项")
        values = data.model_dump(exclude_unset=True)
        values.setdefault("is_active", True)
        return self.create_pricing(SeasonalPricingCreate(**values))

    def delete_pricing(self, pricing_id: int) -> bool:
        """删除季节定价"""
        pricing = self.get_pricing_or_raise(pricing_id)
        event_data = SeasonalPricingChangedData(
            pricing_id=pricing.id,
            business_id=pricing.business_id,
            room_id=pricing.room_id,
            action="deleted",
            is_active=False,
        )
        self.db.delete(pricing)
        self.db.commit()
        logger.info(f"Seasonal pricing {pricing_id} deleted")
        self._publish_data(event_data)
        return True

    # ============== 价格计算 ==============

    def _room(self, room_id: int) -> Room:
        room = self.db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise RoomNotFound(room_id)
        return room

    def calculate_price_for_date(self, room_id: int, night: date) -> NightlyRate:
        """计算房间某一晚的价格"""
        room = self._room(room_id)
        return resolve_nightly_price(room, self.get_rule_set(room_id), night)

    def calculate_price_for_range(self, room_id: int, check_in: date,
                                  check_out: date) -> StayQuote:
        """计算 [check_in, check_out) 的逐晚明细与总价"""
        room = self._room(room_id)
        return compute_stay_price(room, self.get_rule_set(room_id), check_in, check_out)

    # ============== 序列化 ==============

    @staticmethod
    def to_response(pricing: SeasonalPricing) -> dict:
        data = {
            "id": pricing.id,
            "business_id": pricing.business_id,
            "room_id": pricing.room_id,
            "room_number": pricing.room.room_number if pricing.room else None,
            "base_price": pricing.base_price,
            "weekend_price": pricing.weekend_price,
            "peak_season_price": pricing.peak_season_price,
            "high_season_price": pricing.high_season_price,
            "low_season_price": pricing.low_season_price,
            "is_active": bool(pricing.is_active),
            "created_at": pricing.created_at,
            "updated_at": pricing.updated_at,
        }
        for name in SeasonalPricing.LIST_FIELDS:
            data[name] = pricing.get_list(name)
        return data
