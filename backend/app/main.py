"""
City Venture 住宿服务主应用入口
季节定价、房间可用性与预订
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import init_db
from app.routers import rooms, seasonal_pricing, bookings, blocked_dates

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时初始化数据库
    init_db()
    logger.info(f"{settings.APP_NAME} started")

    yield


# 创建应用
app = FastAPI(
    title=settings.APP_NAME,
    description="季节定价、房间可用性与预订服务",
    version="1.0.0",
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(rooms.router)
app.include_router(seasonal_pricing.router)
app.include_router(bookings.router)
app.include_router(blocked_dates.router)


@app.get("/")
def root():
    """根路径"""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "description": "季节定价、房间可用性与预订服务"
    }


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}
