import logging
from fastapi import Depends, Header, HTTPException
from jwt import PyJWTError

from db import get_db
from models.models_user import User
from models.schemas_user import UserOut
from utils.auth_utils import decode_token
from allocation.logic.constants import UserRole

logger = logging.getLogger(__name__)

def auth_user(authorization: str | None = Header(default=None)) -> UserOut:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        data = decode_token(token)
    except PyJWTError as e:
        logger.error(f"Token decode failed: {e}")
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}")
    user_id = data.get("sub")
    with get_db() as db:
        user = db.get(User, user_id)
        if not user:
            logger.error(f"User not found for id: {user_id}")
            raise HTTPException(status_code=401, detail=f"User not found for id: {user_id}")
        if user.is_blocked:
            raise HTTPException(status_code=403, detail="User is blocked")
        return UserOut.model_validate(user)

def central_admin(current: UserOut = Depends(auth_user)) -> UserOut:
    if current.role != UserRole.CENTRAL_ADMIN.value:
        raise HTTPException(status_code=403, detail="Central admin access required")
    return current

def district_admin(current: UserOut = Depends(auth_user)) -> UserOut:
    if current.role not in (UserRole.CENTRAL_ADMIN.value, UserRole.DISTRICT_ADMIN.value):
        raise HTTPException(status_code=403, detail="Admin access required")
    return current
