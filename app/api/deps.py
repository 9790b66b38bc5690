#app/api/deps.py

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from app.core.database import get_database
from app.core.exceptions import ForbiddenException, UnauthorizedException
from app.core.messages import get_message
from app.core.security import decode_access_token
from app.models.base import UserRole
from app.models.user import CurrentUser
from bson import ObjectId

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")

async def get_current_user(token: str = Depends(oauth2_scheme)) -> str:
    """Get current authenticated user id"""
    credentials_exception = UnauthorizedException(get_message("auth.invalid_credentials"))
    credentials_exception.headers = {"WWW-Authenticate": "Bearer"}

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    user_id: str = payload.get("sub")
    if user_id is None or not ObjectId.is_valid(user_id):
        raise credentials_exception

    return user_id

async def get_current_active_user(current_user: str = Depends(get_current_user)) -> CurrentUser:
    """Verify user is active and resolve their role"""
    db = get_database()
    user = await db.users.find_one(
        {"_id": ObjectId(current_user), "is_active": {"$ne": False}},
        {"role": 1}
    )

    if not user:
        raise ForbiddenException(get_message("auth.inactive_user"))

    role = user.get("role", UserRole.USER.value)
    if role not in {r.value for r in UserRole}:
        role = UserRole.USER.value

    return CurrentUser(id=current_user, role=role)
