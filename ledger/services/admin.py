"""Admin service - provisioning users and their bearer keys."""

import hashlib
import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models import User
from ledger.schemas.admin import UserCreate


def generate_api_key() -> str:
    """Generate a secure bearer key for a user.

    Returns:
        A URL-safe random string (lk_ prefix + 43 characters)
    """
    return f"lk_{secrets.token_urlsafe(32)}"


def hash_api_key(api_key: str) -> str:
    """Hash a bearer key for secure storage.

    Args:
        api_key: The plain key

    Returns:
        SHA-256 hash of the key (64 hex characters)
    """
    return hashlib.sha256(api_key.encode()).hexdigest()


async def create_user(session: AsyncSession, data: UserCreate) -> tuple[User, str]:
    """Create a new user.

    Args:
        session: Database session
        data: User creation data

    Returns:
        Tuple of (created user, bearer key)

    Raises:
        IntegrityError: If user_id already exists
    """
    api_key = generate_api_key()

    user = User(id=data.user_id, api_key_hash=hash_api_key(api_key))
    session.add(user)
    await session.commit()
    await session.refresh(user)

    return user, api_key


async def list_users(session: AsyncSession) -> list[User]:
    """Get all users, oldest first."""
    result = await session.execute(select(User).order_by(User.created_at))
    return list(result.scalars().all())
