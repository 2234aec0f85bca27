# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Every sale is attributed to a staff member, so every user logs in with their
own account. Passwords are hashed with bcrypt and must pass the strength
check below.

Roles come from the user's `role` column only (admin | cashier, default
cashier). Self-registration always produces a cashier; an admin promotes
accounts from the settings page.
"""

import re

import bcrypt

from ..extensions import db
from ..models import ROLES, User
from ..time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class UserError(ValueError):
    """Raised for user management failures (duplicate email, unknown role)."""


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


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against bcrypt hash (timing-safe)."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter(User.email == normalize_email(email)).first()


def create_user(name: str, email: str, password: str, role: str = "cashier") -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        UserError: If the email is taken or the role is unknown
        PasswordValidationError: If password doesn't meet requirements
    """
    if role not in ROLES:
        raise UserError(f"role must be one of: {', '.join(ROLES)}")
    if not name or not name.strip():
        raise UserError("name is required")
    email = normalize_email(email)
    if not email or "@" not in email:
        raise UserError("A valid email is required")
    if get_user_by_email(email):
        raise UserError("Email already registered")

    password_hash = hash_password(password)

    user = User(name=name.strip(), email=email, password_hash=password_hash, role=role)
    db.session.add(user)
    db.session.commit()
    return user


def register(name: str, email: str, password: str, confirm_password: str) -> User:
    """Self-registration: always a cashier."""
    if password != confirm_password:
        raise PasswordValidationError("Passwords do not match")
    return create_user(name, email, password, role="cashier")


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = get_user_by_email(email)
    if not user or not user.is_active:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.name.asc(), User.id.asc()).all()


def set_role(user_id: int, role: str, *, acting_user_id: int) -> User:
    if role not in ROLES:
        raise UserError(f"role must be one of: {', '.join(ROLES)}")
    if user_id == acting_user_id:
        raise UserError("You cannot change your own role")
    user = db.session.get(User, user_id)
    if not user:
        raise UserError("User not found")
    user.role = role
    db.session.commit()
    return user


def toggle_role(user_id: int, *, acting_user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise UserError("User not found")
    new_role = "cashier" if user.role == "admin" else "admin"
    return set_role(user_id, new_role, acting_user_id=acting_user_id)


def delete_user(user_id: int, *, acting_user_id: int) -> bool:
    if user_id == acting_user_id:
        raise UserError("You cannot delete your own account")
    user = db.session.get(User, user_id)
    if not user:
        return False
    db.session.delete(user)
    db.session.commit()
    return True
