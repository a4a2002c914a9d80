import logging
from datetime import datetime, timedelta
from typing import Optional

from pydantic import EmailStr
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..models.auth import UserModel
from ..errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..db.mongo import users_collection
from ..utils.jwt_utils import create_jwt_token
from ..utils.hashing import hash_password, verify_password
from ..utils.datetime_utils import now_utc, to_utc_aware
from ..services.achievement_service import achievement_service
from ..schemas.auth_schema import AuthResponse, UserOut, StressPreferencesOut

logger = logging.getLogger(__name__)


def _user_out(doc: dict) -> UserOut:
    prefs = doc.get("stress_preferences") or {}
    return UserOut(
        id=str(doc["_id"]) if doc.get("_id") else None,
        email=doc["email"],
        username=doc.get("username"),
        is_admin=bool(doc.get("is_admin") or doc.get("role") == "admin"),
        login_count=int(doc.get("login_count") or 0),
        login_streak=int(doc.get("login_streak") or 0),
        last_login_at=doc.get("last_login_at"),
        stress_preferences=StressPreferencesOut(**prefs),
    )


def next_login_streak(last_login_at: Optional[datetime], current_streak: int, now: datetime) -> int:
    """Same UTC day keeps the streak, the next day extends it, anything else restarts at 1."""
    if last_login_at is None:
        return 1
    last_day = to_utc_aware(last_login_at).date()
    today = now.date()
    if last_day == today:
        return max(current_streak, 1)
    if last_day == today - timedelta(days=1):
        return current_streak + 1
    return 1


# -----------------------
# Register
# -----------------------
async def register_user(email: EmailStr, username: str, password: str) -> AuthResponse:
    if await users_collection.find_one({"email": email}):
        raise ConflictError("User already exists.")

    username_lc = username.lower()
    if await users_collection.find_one({"username_lc": username_lc}, {"_id": 1}):
        raise ConflictError("Username already taken.")

    user = UserModel(
        email=email,
        username=username,
        username_lc=username_lc,
        password=hash_password(password),
    )
    doc = user.model_dump(by_alias=True, exclude={"id"})
    try:
        result = await users_collection.insert_one(doc)
    except DuplicateKeyError:
        raise ConflictError("User already exists.")

    doc["_id"] = result.inserted_id
    logger.info("Registered user %s", result.inserted_id)
    token = create_jwt_token({"user_id": str(result.inserted_id)})
    return AuthResponse(token=token, user=_user_out(doc))


# -----------------------
# Login with email & password
# -----------------------
async def login_with_email_password(email: EmailStr, password: str) -> AuthResponse:
    user_dict = await users_collection.find_one({"email": email})
    if not user_dict or not verify_password(password, user_dict.get("password", "")):
        raise AuthenticationError("Invalid credentials.")
    if user_dict.get("is_active") is False:
        raise AuthorizationError("Account disabled.")

    now = now_utc()
    streak = next_login_streak(user_dict.get("last_login_at"), int(user_dict.get("login_streak") or 0), now)
    updated = await users_collection.find_one_and_update(
        {"_id": user_dict["_id"]},
        {
            "$inc": {"login_count": 1},
            "$set": {"login_streak": streak, "last_login_at": now, "updated_at": now},
        },
        return_document=ReturnDocument.AFTER,
    )
    updated = updated or user_dict

    user_id = str(user_dict["_id"])
    await achievement_service.process_user_activity(
        user_id, "login", {"login_count": int(updated.get("login_count") or 0)}
    )
    await achievement_service.process_user_activity(user_id, "streak", {"current_streak": streak})

    token = create_jwt_token({"user_id": user_id})
    return AuthResponse(token=token, user=_user_out(updated))


# -----------------------
# Current user
# -----------------------
async def get_authenticated_user(current_user: dict) -> UserOut:
    return _user_out(current_user)


async def update_stress_preferences(current_user: dict, updates: dict) -> UserOut:
    changes = {f"stress_preferences.{k}": v for k, v in updates.items() if v is not None}
    if not changes:
        raise ValidationError("No preferences provided.")
    changes["updated_at"] = now_utc()

    updated = await users_collection.find_one_and_update(
        {"_id": current_user["_id"]},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise NotFoundError("User not found.")
    return _user_out(updated)
