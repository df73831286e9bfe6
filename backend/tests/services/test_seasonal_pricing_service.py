"""
Tests for app/services/seasonal_pricing_service.py
Covers: create/update/upsert/delete, single-active invariant,
        calculate_price_for_date, calculate_price_for_range, events
"""
import pytest
from datetime import date
from decimal import Decimal

from app.models.ontology import SeasonalPricing
from app.models.schemas import (
    SeasonalPricingCreate, SeasonalPricingUpdate, SeasonalPricingUpsert,
)
from app.services.seasonal_pricing_service import SeasonalPricingService
from app.accommodation.domain import PricingNotFound, RoomNotFound, Tier


# ── helpers ──────────────────────────────────────────────────────────

def _create_payload(room, **overrides):
    values = dict(
        business_id=room.business_id,
        room_id=room.id,
        base_price=Decimal("1000"),
        weekend_price=Decimal("1500"),
        weekend_days=["saturday"],
        peak_season_price=Decimal("2000"),
        peak_season_months=[12],
    )
    values.update(overrides)
    return SeasonalPricingCreate(**values)


# ── tests ────────────────────────────────────────────────────────────

class TestCreatePricing:

    def test_create(self, db_session, sample_room, published_events):
        """创建季节定价并发布事件"""
        service = SeasonalPricingService(db_session, published_events.append)
        pricing = service.create_pricing(_create_payload(sample_room))

        assert pricing.id is not None
        assert pricing.get_list("weekend_days") == ["Saturday"]
        assert pricing.get_list("peak_season_months") == [12]
        assert len(published_events) == 1
        assert published_events[0].event_type == "seasonal_pricing.changed"
        assert published_events[0].data["action"] == "created"

    def test_create_for_other_business_room_rejected(self, db_session, sample_room, other_business):
        """房间必须属于指定商家"""
        service = SeasonalPricingService(db_session)
        with pytest.raises(RoomNotFound):
            service.create_pricing(_create_payload(sample_room, business_id=other_business.id))

    def test_new_active_row_deactivates_previous(self, db_session, sample_room):
        """每个房间最多一个生效配置"""
        service = SeasonalPricingService(db_session)
        first = service.create_pricing(_create_payload(sample_room))
        second = service.create_pricing(_create_payload(sample_room, base_price=Decimal("1200")))

        db_session.refresh(first)
        assert first.is_active is False
        assert second.is_active is True
        assert service.get_active_for_room(sample_room.id).id == second.id

    def test_inactive_create_keeps_existing_active(self, db_session, sample_room):
        service = SeasonalPricingService(db_session)
        first = service.create_pricing(_create_payload(sample_room))
        service.create_pricing(_create_payload(sample_room, is_active=False))

        assert service.get_active_for_room(sample_room.id).id == first.id

    def test_invalid_month_rejected(self, sample_room):
        with pytest.raises(ValueError):
            _create_payload(sample_room, peak_season_months=[13])

    def test_invalid_weekday_rejected(self, sample_room):
        with pytest.raises(ValueError):
            _create_payload(sample_room, weekend_days=["Funday"])


class TestUpdatePricing:

    def test_partial_update_keeps_absent_fields(self, db_session, sample_room):
        """未出现在请求中的字段保持不变"""
        service = SeasonalPricingService(db_session)
        pricing = service.create_pricing(_create_payload(sample_room))

        updated = service.update_pricing(
            pricing.id, SeasonalPricingUpdate(high_season_price=Decimal("1700"),
                                              high_season_months=[7, 8])
        )

        assert updated.high_season_price == Decimal("1700")
        assert updated.get_list("high_season_months") == [7, 8]
        assert updated.peak_season_price == Decimal("2000")
        assert updated.get_list("weekend_days") == ["Saturday"]

    def test_explicit_null_clears_field(self, db_session, sample_room):
        service = SeasonalPricingService(db_session)
        pricing = service.create_pricing(_create_payload(sample_room))

        updated = service.update_pricing(pricing.id, SeasonalPricingUpdate(weekend_price=None))
        assert updated.weekend_price is None

    def test_update_missing(self, db_session):
        service = SeasonalPricingService(db_session)
        with pytest.raises(PricingNotFound):
            service.update_pricing(999, SeasonalPricingUpdate(base_price=Decimal("1")))

    def test_reactivating_deactivates_others(self, db_session, sample_room):
        service = SeasonalPricingService(db_session)
        first = service.create_pricing(_create_payload(sample_room))
        second = service.create_pricing(_create_payload(sample_room))

        service.update_pricing(first.id, SeasonalPricingUpdate(is_active=True))
        db_session.refresh(second)
        assert second.is_active is False
        assert service.get_active_for_room(sample_room.id).id == first.id


class TestUpsertPricing:

    def test_upsert_creates_when_missing(self, db_session, sample_room):
        service = SeasonalPricingService(db_session)
        pricing = service.upsert_pricing(SeasonalPricingUpsert(
            business_id=sample_room.business_id, room_id=sample_room.id,
            base_price=Decimal("900"),
        ))
        assert pricing.is_active is True
        assert pricing.base_price == Decimal("900")

    def test_upsert_create_requires_base_price(self, db_session, sample_room):
        service = SeasonalPricingService(db_session)
        with pytest.raises(ValueError, match="base_price"):
            service.upsert_pricing(SeasonalPricingUpsert(
                business_id=sample_room.business_id, room_id=sample_room.id,
                weekend_price=Decimal("1500"),
            ))

    def test_upsert_updates_active_row(self, db_session, sample_room):
        """已有生效配置时更新该配置而不是新建"""
        service = SeasonalPricingService(db_session)
        existing = service.create_pricing(_create_payload(sample_room))

        pricing = service.upsert_pricing(SeasonalPricingUpsert(
            business_id=sample_room.business_id, room_id=sample_room.id,
            low_season_price=Decimal("700"), low_season_months=[2],
        ))

        assert pricing.id == existing.id
        assert pricing.low_season_price == Decimal("700")
        assert db_session.query(SeasonalPricing).count() == 1


class TestDeletePricing:

    def test_delete(self, db_session, sample_room, published_events):
        service = SeasonalPricingService(db_session, published_events.append)
        pricing_id = service.create_pricing(_create_payload(sample_room)).id

        assert service.delete_pricing(pricing_id) is True
        assert service.get_pricing(pricing_id) is None
        assert published_events[-1].data["action"] == "deleted"

    def test_delete_missing(self, db_session):
        with pytest.raises(PricingNotFound):
            SeasonalPricingService(db_session).delete_pricing(999)


class TestCalculatePrice:

    def test_price_for_date_without_pricing(self, db_session, sample_room):
        """未配置季节定价使用房间默认价"""
        rate = SeasonalPricingService(db_session).calculate_price_for_date(
            sample_room.id, date(2025, 12, 6))
        assert rate.price == Decimal("1000.00")
        assert rate.tier == Tier.DEFAULT

    def test_price_for_date_peak_saturday(self, db_session, sample_room):
        service = SeasonalPricingService(db_session)
        service.create_pricing(_create_payload(sample_room))

        rate = service.calculate_price_for_date(sample_room.id, date(2025, 12, 6))
        assert rate.price == Decimal("2000.00")
        assert rate.tier == Tier.PEAK_SEASON

    def test_price_for_range(self, db_session, sample_room):
        service = SeasonalPricingService(db_session)
        service.create_pricing(_create_payload(sample_room))

        quote = service.calculate_price_for_range(sample_room.id, date(2025, 11, 28),
                                                  date(2025, 12, 2))
        assert quote.nights == 4
        assert quote.total == Decimal("5500.00")

    def test_inactive_pricing_ignored(self, db_session, sample_room):
        service = SeasonalPricingService(db_session)
        service.create_pricing(_create_payload(sample_room, is_active=False))

        rate = service.calculate_price_for_date(sample_room.id, date(2025, 12, 6))
        assert rate.tier == Tier.DEFAULT

    def test_unknown_room(self, db_session):
        with pytest.raises(RoomNotFound):
            SeasonalPricingService(db_session).calculate_price_for_date(999, date(2025, 1, 1))

    def test_get_rule_sets_batch(self, db_session, sample_room, sample_room_102):
        service = SeasonalPricingService(db_session)
        service.create_pricing(_create_payload(sample_room))

        rule_sets = service.get_rule_sets([sample_room.id, sample_room_102.id])
        assert set(rule_sets) == {sample_room.id}
        assert service.get_rule_sets([]) == {}


class TestToResponse:

    def test_lists_decoded(self, db_session, sample_room):
        service = SeasonalPricingService(db_session)
        pricing = service.create_pricing(_create_payload(sample_room))

        data = service.to_response(pricing)
        assert data["room_number"] == "101"
        assert data["weekend_days"] == ["Saturday"]
        assert data["high_season_months"] == []
