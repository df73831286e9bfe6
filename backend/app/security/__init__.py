# Security module
from app.security.auth import (
    CurrentUser, UserRole, create_access_token, get_current_user,
    require_role, ensure_business_access,
)

__all__ = [
    'CurrentUser', 'UserRole', 'create_access_token', 'get_current_user',
    'require_role', 'ensure_business_access',
]
