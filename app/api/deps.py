from app.services.auth_dependencies import (
    bearer_token,
    require_role,
    require_user_auth,
    require_write_access,
)

__all__ = [
    "bearer_token",
    "require_role",
    "require_user_auth",
    "require_write_access",
]
