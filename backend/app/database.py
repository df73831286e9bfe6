"""
数据库配置 - SQLAlchemy 持久化层
"""
import logging
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, declarative_base
from app.config import settings

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL


def configure_sqlite_locking(bind) -> None:
    """
    SQLite 事务改为以 BEGIN IMMEDIATE 开始

    pysqlite 默认在第一条写语句前才发出 BEGIN，且忽略 FOR UPDATE，
    预订的可用性检查因此会落在事务之外。这里关闭驱动的隐式事务，
    由 begin 事件显式获取写锁，检查与写入处于同一把锁内。
    """
    @event.listens_for(bind, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        # 启用 WAL 模式以提高并发读性能（内存库忽略）
        dbapi_connection.execute("PRAGMA journal_mode=WAL")

    @event.listens_for(bind, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


_connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=_connect_args)
if engine.dialect.name == "sqlite":
    configure_sqlite_locking(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# PostgreSQL 下的预订重叠排他约束：同一房间占用中的预订不能有重叠的 [入住, 离店) 区间
BOOKING_OVERLAP_CONSTRAINT = """
ALTER TABLE bookings ADD CONSTRAINT no_room_booking_overlap
EXCLUDE USING gist (
    room_id WITH =,
    daterange(check_in_date, check_out_date, '[)') WITH &&
) WHERE (status NOT IN ('CANCELED', 'CHECKED_OUT'))
"""


def get_db():
    """依赖注入：获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _install_overlap_constraint(bind) -> None:
    with bind.begin() as conn:
        exists = conn.execute(text(
            "SELECT 1 FROM pg_constraint WHERE conname = 'no_room_booking_overlap'"
        )).first()
        if exists:
            return
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))
        conn.execute(text(BOOKING_OVERLAP_CONSTRAINT))
        logger.info("Installed booking overlap exclusion constraint")


def init_db(bind=None):
    """初始化数据库表"""
    from app.models import ontology  # noqa
    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    if bind.dialect.name == "postgresql":
        _install_overlap_constraint(bind)
