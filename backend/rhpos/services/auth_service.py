# Overview: Service-layer operations for auth; passwords, users and bearer tokens.

"""
Authentication Service with Multi-Tenant Support

WHY: Every tenant-bound request must carry a verifiable identity and the
tenant it acts for. Passwords are hashed with bcrypt; sessions are stateless
HS256 JWTs.

MULTI-TENANT: the token carries the encoded tenant id. require_auth decodes
it into a TenantScope; a token without a valid tenant claim authenticates
but every tenant-bound call fails closed.

TOKEN CLAIMS:
- sub: encoded user id
- username, role
- tenant_id: encoded tenant id (absent for users without a tenant)
- iat, exp (JWT_EXPIRES_HOURS, default 24)

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, upper, lower, digit and special character
- Login failures never say whether the username exists
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone

import bcrypt
from flask import current_app
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..models import Tenant, User
from .identifier_service import IdentifierCodec

logger = logging.getLogger(__name__)


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt (cost factor 12)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; malformed hashes simply fail."""
    if not isinstance(password, str) or not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(username: str, password: str, tenant_id: int | None, role: str = "user") -> User:
    """
    Create a user (platform admin operation).

    Raises:
        ValidationError: blank username or weak password
        NotFoundError: tenant_id does not exist
        ConflictError: username already taken
    """
    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required")

    if tenant_id is not None and db.session.get(Tenant, tenant_id) is None:
        raise NotFoundError("Tenant")

    if db.session.query(User.id).filter(User.username == username).first() is not None:
        raise ConflictError("Username already exists", details={"username": username})

    user = User(
        username=username,
        password_hash=hash_password(password),
        role=(role or "user").strip() or "user",
        tenant_id=tenant_id,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username already exists", details={"username": username})

    logger.info("user created id=%s username=%s tenant_id=%s", user.id, user.username, tenant_id)
    return user


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User")
    return user


def issue_token(user: User, codec: IdentifierCodec) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": codec.encode(user.id),
        "username": user.username,
        "role": user.role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=current_app.config["JWT_EXPIRES_HOURS"])).timestamp()),
    }
    if user.tenant_id is not None:
        claims["tenant_id"] = codec.encode(user.tenant_id)
    return jwt.encode(claims, current_app.config["JWT_SECRET"], algorithm=current_app.config["JWT_ALGORITHM"])


def decode_token(token: str) -> dict:
    """Verify signature and expiry; raises AuthenticationError otherwise."""
    try:
        return jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
        )
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token") from exc


def login(username: str, password: str, codec: IdentifierCodec) -> tuple[str, User]:
    """
    Authenticate and issue a bearer token.

    Returns:
        (token, user)

    Raises:
        AuthenticationError: unknown username or wrong password
    """
    username = (username or "").strip()
    user = db.session.query(User).filter(User.username == username).first() if username else None

    if user is None or not verify_password(password, user.password_hash):
        logger.info("login failed username=%s", username)
        raise AuthenticationError("Invalid username or password")

    logger.info("login succeeded user_id=%s tenant_id=%s", user.id, user.tenant_id)
    return issue_token(user, codec), user


def update_password(user_id: int, current_password: str, new_password: str) -> None:
    user = get_user(user_id)
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    if current_password == new_password:
        raise ValidationError("New password must differ from the current password")

    user.password_hash = hash_password(new_password)
    db.session.commit()
    logger.info("password updated user_id=%s", user.id)
