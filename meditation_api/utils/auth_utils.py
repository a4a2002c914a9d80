# meditation_api/utils/auth_utils.py
from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from bson import ObjectId

from ..config import JWT_SECRET_KEY, JWT_ALGORITHM
from ..db.mongo import users_collection
from ..errors import AuthenticationError, AuthorizationError, InternalError

# Bearer scheme for typical HTTP routes; 401 (not 403) when the header is missing
bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------
def decode_token(token: str) -> str:
    """Return the user_id carried by a valid token or raise AuthenticationError."""
    if not JWT_SECRET_KEY:
        raise InternalError("JWT secret not configured.")
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired token.")
    user_id = payload.get("user_id")
    if not user_id:
        raise AuthenticationError("Invalid token payload.")
    return str(user_id)


async def _load_user_or_401(user_id: str):
    if not ObjectId.is_valid(user_id):
        raise AuthenticationError("Invalid token payload.")

    user = await users_collection.find_one({"_id": ObjectId(user_id)})
    if not user:
        raise AuthenticationError("User not found.")
    if user.get("is_active") is False:
        raise AuthorizationError("Account disabled.")
    return user


# ------------------------------------------------------------------
# Public dependencies
# ------------------------------------------------------------------
async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
):
    """
    Validates the Bearer JWT and loads the user.
    Returns the Mongo user document (with ObjectId _id).
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Unauthorized: User not authenticated")
    user_id = decode_token(credentials.credentials)
    return await _load_user_or_401(user_id)


async def get_current_admin_user(user: dict = Depends(get_current_user)):
    """
    Admin guard. Accepts either user.role == 'admin' or user.is_admin == True.
    """
    if not (user.get("role") == "admin" or user.get("is_admin") is True):
        raise AuthorizationError("Unauthorized: Admin access required")
    return user
