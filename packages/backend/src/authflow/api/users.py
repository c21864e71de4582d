"""User API — the signed-in user and the admin user listing.

Learn: Shows both guards in use. /users/me only needs a valid session;
/users additionally requires the admin role. The guard instance is
created once here, at import time.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from authflow.auth.dependencies import protect, restrict_to
from authflow.auth.session import public_user
from authflow.db.engine import get_db
from authflow.db.models import User, UserRole
from authflow.services.user_store import UserStore

router = APIRouter(prefix="/users")

admin_only = restrict_to(UserRole.ADMIN)


@router.get("/me")
async def get_me(current_user: User = Depends(protect)):
    """Get the current authenticated user's info."""
    return {"status": "success", "ok": True, "data": {"user": public_user(current_user)}}


@router.get("", dependencies=[Depends(admin_only)])
async def list_users(db: AsyncSession = Depends(get_db)):
    """List all users (admin only)."""
    users = await UserStore(db).list_users()
    return {
        "status": "success",
        "ok": True,
        "results": len(users),
        "data": {"users": [public_user(u) for u in users]},
    }
