# Overview: Service-layer operations for auth; password hashing, user creation and login.

"""
Authentication Service

WHY: Every sale is attributed to the cashier who rang it up. Uses bcrypt for
password hashing and validates password strength at creation time.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, mixed case, digit and special character required
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..models.auth import USER_ROLES
from ..time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """Raises PasswordValidationError if requirements not met."""
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str, rounds: int = 12) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Malformed hashes count as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(
    name: str,
    email: str,
    password: str,
    role: str = "Staff",
) -> User:
    """
    Create an operator account.

    Raises ValueError for an unknown role or a duplicate email, and
    PasswordValidationError for a weak password.
    """
    email = (email or "").strip().lower()
    if not name or not email:
        raise ValueError("Name and email are required")
    if role not in USER_ROLES:
        raise ValueError(f"Role must be one of: {', '.join(USER_ROLES)}")

    if db.session.query(User.id).filter_by(email=email).first():
        raise ValueError("Email already exists")

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password, rounds=current_app.config.get("BCRYPT_ROUNDS", 12)),
        role=role,
        is_active=True,
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Return the active user for these credentials, or None.

    Updates last_login_at on success.
    """
    email = (email or "").strip().lower()
    user = db.session.query(User).filter(
        User.email == email,
        User.is_active.is_(True),
    ).first()

    if not user or not verify_password(password or "", user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
