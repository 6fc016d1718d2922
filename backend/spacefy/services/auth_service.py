"""Authentication service — accounts, password hashing, sessions.

All password operations use bcrypt via passlib. Passwords are never stored
or logged in plaintext. The service layer owns user lifecycle; endpoints
are thin wrappers.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from passlib.hash import bcrypt
from sqlalchemy.orm import Session

from . import audit_service
from ..core.config import settings
from ..core.token_factory import create_token, decode_token
from ..exceptions import AuthenticationError, ConflictError, MisconfiguredRouteError, ResourceNotFoundError
from ..models.user import BlacklistedToken, Role, User
from ..repositories.resources import RoleRepository, UserRepository

logger = logging.getLogger(__name__)


def _role_by_name(db: Session, name: str) -> Role:
    role = RoleRepository(db).get_by_name(name.upper())
    if role is None:
        # Roles are seeded at startup; a missing one is a deployment defect.
        raise MisconfiguredRouteError(f"Role {name} is not configured")
    return role


def create_account(db: Session, name: str, email: str, password: str, role_name: str) -> User:
    """Create a user with *role_name*. Raises ConflictError if the email is taken."""
    if UserRepository(db).get_by_email(email) is not None:
        raise ConflictError("Email already in use", field="email")

    role = _role_by_name(db, role_name)
    user = User(
        name=name.strip(),
        email=email,
        password_hash=bcrypt.hash(password),
        role_id=role.id,
        is_active=True,
    )
    return UserRepository(db).add(user)


def register_user(db: Session, name: str, email: str, password: str) -> User:
    """Self-registration.

    The first account becomes the platform administrator so a fresh
    deployment can be configured. Everyone after that gets the default role.
    """
    is_first_user = db.query(User.id).first() is None
    role_name = settings.platform_admin_role if is_first_user else settings.default_role
    user = create_account(db, name, email, password, role_name)
    if is_first_user:
        logger.info("First user registered as platform administrator: %s", email)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Validate credentials and return the user.

    Raises AuthenticationError on invalid email, wrong password, or inactive account.
    """
    email = email.strip().lower()
    user = UserRepository(db).get_by_email(email)

    if user is None or not bcrypt.verify(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    audit_service.log(db, user.id, "login", "user", user.id)
    return user


def issue_token(user: User) -> str:
    return create_token(
        subject=user.id,
        role_id=user.role_id,
        role_name=user.role_name,
        secret=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_hours=settings.jwt_expires_hours,
    )


def logout(db: Session, token: str, user_id: str) -> None:
    """Revoke *token* until it would have expired anyway. Idempotent."""
    payload = decode_token(token, settings.jwt_secret_key, settings.jwt_algorithm)
    if payload is None:
        raise AuthenticationError("Invalid token")

    exists = db.query(BlacklistedToken.token).filter(BlacklistedToken.token == token).first()
    if exists is None:
        db.add(BlacklistedToken(token=token, user_id=user_id, expires_at=payload.exp))
        db.commit()
    audit_service.log(db, user_id, "logout", "user", user_id)


def purge_expired_tokens(db: Session) -> int:
    """Delete blacklist rows whose tokens have expired. Returns count removed."""
    now = datetime.now(timezone.utc)
    count = db.query(BlacklistedToken).filter(BlacklistedToken.expires_at < now).delete()
    db.commit()
    return count


def get_user(db: Session, user_id: str) -> Optional[User]:
    return UserRepository(db).get_by_id_optional(user_id)


def change_role(db: Session, user_id: str, role_id: str, changed_by: str) -> User:
    """Assign a different role to a user. Takes effect on their next login."""
    user = UserRepository(db).get_by_id(user_id)
    role = RoleRepository(db).get_by_id_optional(role_id)
    if role is None:
        raise ResourceNotFoundError("Role", role_id)

    old_role = user.role_name
    user.role_id = role.id
    db.commit()
    db.refresh(user)
    audit_service.log(
        db, changed_by, "role_change", "user", user.id,
        details={"from": old_role, "to": role.name},
    )
    return user


def delete_user(db: Session, user: User, deleted_by: str) -> None:
    user_id = user.id
    UserRepository(db).delete(user)
    # Self-deletion leaves no actor row to reference.
    actor = deleted_by if deleted_by != user_id else None
    audit_service.log(db, actor, "delete", "user", user_id)
