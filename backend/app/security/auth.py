"""
认证与授权模块

用户与会话由外部认证服务管理，本服务只校验其签发的 JWT：
令牌中携带 sub（用户 ID）、role 以及商家用户的 business_id。
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from enum import Enum
from typing import List, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from app.config import settings

logger = logging.getLogger(__name__)

security = HTTPBearer()


class UserRole(str, Enum):
    """用户角色"""
    ADMIN = "admin"        # 平台管理员
    OWNER = "owner"        # 商家业主
    STAFF = "staff"        # 商家员工
    TOURIST = "tourist"    # 游客


@dataclass(frozen=True)
class CurrentUser:
    """当前请求的用户身份（来自令牌声明）"""
    id: int
    role: UserRole
    business_id: Optional[int] = None

    def can_manage(self, business_id: int) -> bool:
        """是否可以管理指定商家的房间、定价与预订"""
        if self.role == UserRole.ADMIN:
            return True
        return self.role in (UserRole.OWNER, UserRole.STAFF) and self.business_id == business_id


def create_access_token(user_id: int, role: UserRole,
                        business_id: Optional[int] = None) -> str:
    """签发 JWT token（认证服务与测试使用）"""
    expire = datetime.now(UTC) + timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS)
    to_encode = {
        "sub": str(user_id),
        "role": role.value if isinstance(role, UserRole) else str(role),
        "exp": expire,
    }
    if business_id is not None:
        to_encode["business_id"] = business_id
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """解码 JWT token"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="无效的认证凭证"
        )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """获取当前登录用户"""
    payload = decode_token(credentials.credentials)
    try:
        return CurrentUser(
            id=int(payload["sub"]),
            role=UserRole(payload["role"]),
            business_id=payload.get("business_id"),
        )
    except (KeyError, ValueError, TypeError):
        logger.warning("Rejected token with malformed claims")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="无效的认证凭证"
        )


def require_role(allowed_roles: List[UserRole]):
    """角色权限验证"""
    async def role_checker(current_user: CurrentUser = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="权限不足"
            )
        return current_user
    return role_checker


# 便捷的角色检查器
require_business_user = require_role([UserRole.ADMIN, UserRole.OWNER, UserRole.STAFF])


def ensure_business_access(current_user: CurrentUser, business_id: int) -> None:
    """校验当前用户是否属于该商家（管理员除外）"""
    if not current_user.can_manage(business_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="无权操作该商家"
        )
