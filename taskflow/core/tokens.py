from dataclasses import dataclass

from fastapi import Header, HTTPException, status
from itsdangerous import BadData, URLSafeTimedSerializer

from taskflow.core.config import get_settings

settings = get_settings()
serializer = URLSafeTimedSerializer(settings.secret_key, salt="bearer-token")

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    role: str

    @property
    def is_app_admin(self) -> bool:
        return self.role == "admin"


def issue_token(user) -> str:
    return serializer.dumps({"id": user.id, "email": user.email, "role": user.role})


def extract_bearer(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):] or None


def verify_token(token: str) -> Identity | None:
    try:
        payload = serializer.loads(token, max_age=settings.token_max_age_seconds)
        return Identity(id=int(payload["id"]), email=str(payload["email"]), role=str(payload["role"]))
    except (BadData, KeyError, TypeError, ValueError):
        return None


def require_identity(authorization: str | None = Header(default=None)) -> Identity:
    token = extract_bearer(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    identity = verify_token(token)
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return identity
