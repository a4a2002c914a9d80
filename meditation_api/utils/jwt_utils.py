import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..config import JWT_SECRET_KEY, JWT_ALGORITHM, JWT_EXPIRES_HOURS


def create_jwt_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=JWT_EXPIRES_HOURS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)
