import logging

from app.crud.companies import authenticate_admin, authenticate_company
from app.crud.students import authenticate_student
from app.utils.exceptions import unauthorized
from app.utils.security import create_access_token

logger = logging.getLogger(__name__)

AUTHENTICATORS = {
    "student": authenticate_student,
    "company": authenticate_company,
    "admin": authenticate_admin,
}


async def login_user(email: str, password: str, role: str = "student") -> dict:
    authenticate = AUTHENTICATORS.get(role)
    if authenticate is None:
        unauthorized("Invalid credentials")

    user = await authenticate(email, password)
    if not user:
        logger.info("Failed %s login for %s", role, email)
        unauthorized("Invalid credentials")

    return {
        "access_token": create_access_token(user["id"], role),
        "token_type": "bearer",
        "role": role,
        "user": user,
    }
