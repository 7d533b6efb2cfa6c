"""
Password hashing with bcrypt.

bcrypt is CPU-bound; callers on the event loop go through the async
wrappers, which run it in a worker thread.
"""

import asyncio
from typing import Optional

import bcrypt

from devtasks.config import settings


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


async def hash_password_async(password: str) -> str:
    return await asyncio.to_thread(hash_password, password)


async def check_password_async(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(check_password, password, password_hash)
