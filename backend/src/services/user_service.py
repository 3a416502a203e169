"""Service layer for local user accounts."""
import logging

import bcrypt
from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User
from services.exceptions import InvalidCredentialsError, UsernameTakenError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    """Get a user by ID."""
    return await db.get(User, user_id)


async def ensure_admin_exists(db: AsyncSession) -> User | None:
    """
    Promote the earliest user to admin when users exist but none is an admin.

    Returns:
        The promoted user, or None if no promotion was needed.
    """
    has_admin = await db.scalar(select(exists().where(User.is_admin.is_(True))))
    if has_admin:
        return None
    earliest = await db.scalar(
        select(User).order_by(User.created_at, User.id).limit(1),
    )
    if earliest is None:
        return None
    await db.execute(
        update(User)
        .where(User.id == earliest.id)
        .values(is_admin=True)
        .execution_options(synchronize_session=False),
    )
    await db.refresh(earliest)
    logger.info("Promoted user %s to admin", earliest.username)
    return earliest


async def register_user(db: AsyncSession, username: str, password: str) -> User:
    """
    Create a user account.

    Args:
        db: Database session.
        username: Already normalized (trimmed, lower-cased) username.
        password: Plaintext password.

    Raises:
        UsernameTakenError: The username is already registered.
    """
    taken = await db.scalar(select(User.id).where(User.username == username))
    if taken is not None:
        raise UsernameTakenError(username)

    user = User(username=username, password_hash=hash_password(password))
    try:
        async with db.begin_nested():
            db.add(user)
            await db.flush()
    except IntegrityError:
        # Concurrent registration of the same name won the race
        raise UsernameTakenError(username) from None

    await ensure_admin_exists(db)
    await db.refresh(user)
    logger.info("Registered user %s", username)
    return user


async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    """
    Look up a user by normalized username and verify the password.

    Raises:
        InvalidCredentialsError: Unknown user or wrong password.
    """
    user = await db.scalar(select(User).where(User.username == username))
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    return user
