"""
Password hashing helpers (bcrypt).

Hashes are stored as UTF-8 strings. Verification uses bcrypt.checkpw,
which compares in constant time. Async callers use the *_async variants,
which run the deliberately slow hash on a worker thread.
"""

import asyncio

import bcrypt

MIN_PASSWORD_LENGTH = 8
BCRYPT_ROUNDS = 12

# bcrypt refuses inputs longer than this
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, hashed: str) -> bool:
    """Verify password against hash"""
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


async def hash_password_async(password: str) -> str:
    """hash_password on a worker thread, keeping the event loop free"""
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, hashed: str) -> bool:
    """verify_password on a worker thread, keeping the event loop free"""
    return await asyncio.to_thread(verify_password, password, hashed)
