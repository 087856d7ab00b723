from datetime import datetime, timedelta, timezone

import jwt

from peerrank.auth.principal import ADMIN, STUDENT, Principal
from peerrank.core import config


def create_access_token(principal: Principal, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    now = datetime.now(timezone.utc)
    payload = {
        "sub": principal.subject,
        "role": principal.kind,
        "exp": now + timedelta(minutes=expire_minutes),
        "iat": now,
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])


def principal_from_subject(subject: str | None) -> Principal | None:
    """Parse ``student:<id>`` or ``admin:<username>``; None when malformed."""
    if not subject or ":" not in subject:
        return None

    kind, _, value = subject.partition(":")
    if kind == STUDENT:
        if not value.isdigit():
            return None
        return Principal.student(int(value))
    if kind == ADMIN and value:
        return Principal.admin(value)
    return None
