# Overview: Service-layer operations for admin authentication; encapsulates business logic and database work.

"""
Admin Authentication Service

Admin accounts gate every mutating API call. Uses bcrypt for password
hashing and validates password strength on creation.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
import re
from ..extensions import db
from ..models import AdminUser
from stockledger.time_utils import utcnow


class PasswordValidationError(Exception):
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

    Raises PasswordValidationError if requirements not met.
    """
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


def hash_password(password: str, *, rounds: int = 12) -> str:
    """
    Hash password using bcrypt (cost factor 12 by default).

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including
    malformed hashes).
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_admin(email: str, password: str, name: str | None = None, *, rounds: int = 12) -> AdminUser:
    """
    Create an admin account with bcrypt password hashing.

    Raises:
        ValueError: If the email is already registered
        PasswordValidationError: If password doesn't meet requirements
    """
    email = email.strip().lower()
    if not email:
        raise ValueError("email is required")

    existing = db.session.query(AdminUser).filter(AdminUser.email == email).first()
    if existing:
        raise ValueError("An admin with this email already exists")

    password_hash = hash_password(password, rounds=rounds)

    user = AdminUser(email=email, name=name, password_hash=password_hash)
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> AdminUser | None:
    """
    Authenticate an admin by email and password.

    Returns AdminUser if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(AdminUser).filter(
        AdminUser.email == email.strip().lower(),
        AdminUser.is_active.is_(True),
    ).first()

    if not user:
        return None

    # Verify password
    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
