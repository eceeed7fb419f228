import logging

import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from app.utils.exceptions import forbidden, unauthorized
from app.utils.security import decode_access_token

logger = logging.getLogger(__name__)

ROLES = ("student", "company", "admin")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


async def get_current_user(token: str = Depends(oauth2_scheme)) -> dict:
    if not token:
        unauthorized("Not authorized, no token")

    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as e:
        logger.info("Rejected access token: %s", e)
        unauthorized("Not authorized, token failed")

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or role not in ROLES:
        unauthorized("Not authorized, token failed")

    return {"user_id": user_id, "role": role}


def require_role(*roles: str):
    async def checker(current_user: dict = Depends(get_current_user)) -> dict:
        if current_user["role"] not in roles:
            forbidden(
                f"User role {current_user['role']} is not authorized to access this route"
            )
        return current_user

    return checker
