"""
Pytest 配置和共享 fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from decimal import Decimal

from app.database import Base, get_db
from app.models.ontology import Business, Room
from app.security.auth import UserRole, create_access_token
from app.services.event_bus import event_bus
from app.main import app


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clean_event_bus():
    """每个测试前后清空全局事件总线"""
    event_bus.clear()
    yield
    event_bus.clear()


@pytest.fixture
def published_events():
    """收集服务发布的事件（注入 event_publisher 使用）"""
    return []


# ============== 实体相关 Fixtures ==============

@pytest.fixture
def sample_business(db_session):
    """创建测试商家"""
    business = Business(business_name="海边民宿")
    db_session.add(business)
    db_session.commit()
    db_session.refresh(business)
    return business


@pytest.fixture
def other_business(db_session):
    """创建另一个商家"""
    business = Business(business_name="山景酒店")
    db_session.add(business)
    db_session.commit()
    db_session.refresh(business)
    return business


def _make_room(db_session, business, room_number, base_price="1000.00"):
    room = Room(
        business_id=business.id,
        room_number=room_number,
        room_type="Standard",
        base_price=Decimal(base_price),
        capacity=2,
    )
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def sample_room(db_session, sample_business):
    """创建101房间"""
    return _make_room(db_session, sample_business, "101")


@pytest.fixture
def sample_room_102(db_session, sample_business):
    """创建102房间"""
    return _make_room(db_session, sample_business, "102", "1200.00")


@pytest.fixture
def other_room(db_session, other_business):
    """其他商家的房间"""
    return _make_room(db_session, other_business, "A1", "800.00")


# ============== 认证相关 Fixtures ==============

@pytest.fixture
def admin_token():
    return create_access_token(1, UserRole.ADMIN)


@pytest.fixture
def owner_token(sample_business):
    """本商家业主"""
    return create_access_token(10, UserRole.OWNER, sample_business.id)


@pytest.fixture
def staff_token(sample_business):
    """本商家员工"""
    return create_access_token(11, UserRole.STAFF, sample_business.id)


@pytest.fixture
def other_owner_token(other_business):
    """其他商家业主"""
    return create_access_token(20, UserRole.OWNER, other_business.id)


@pytest.fixture
def tourist_token():
    return create_access_token(100, UserRole.TOURIST)


@pytest.fixture
def auth_headers(owner_token):
    """返回带认证的请求头（本商家业主）"""
    return {"Authorization": f"Bearer {owner_token}"}


@pytest.fixture
def staff_auth_headers(staff_token):
    return {"Authorization": f"Bearer {staff_token}"}


@pytest.fixture
def admin_auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def other_owner_auth_headers(other_owner_token):
    return {"Authorization": f"Bearer {other_owner_token}"}


@pytest.fixture
def tourist_auth_headers(tourist_token):
    return {"Authorization": f"Bearer {tourist_token}"}
