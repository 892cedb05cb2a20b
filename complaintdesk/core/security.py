from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError

ALGORITHM = "HS256"


def create_access_token(
    *,
    subject: str,
    role: str,
    secret: str,
    department: Optional[str] = None,
    email: Optional[str] = None,
    name: Optional[str] = None,
    expires_minutes: int = 60,
) -> str:
    """
    Токени видає сервіс автентифікації; ця функція — його дзеркало
    для скриптів і тестів.
    """
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expires_minutes)
    payload = {
        "sub": subject,
        "role": role,
        "department": department,
        "email": email,
        "name": name,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str, algorithm: str = ALGORITHM) -> Dict[str, Any]:
    try:
        data = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError as e:
        raise ValueError("invalid_token") from e
    if data.get("type") != "access" or "sub" not in data:
        raise ValueError("invalid_token_payload")
    return data
