from fastapi import HTTPException, Depends, status
from typify.models import User
from typify.security.auth import require_user

def require_superadmin(user: User = Depends(require_user)) -> User:
    """
    Dependency that enforces the user must be a superadmin.
    """
    if not user.is_superadmin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be a platform superadmin to perform this action."
        )
    return user
