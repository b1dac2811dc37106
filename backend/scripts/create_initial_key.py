"""Create the initial API key from the command line.

Same rules as ``POST /api/init-key``: only works while no key exists.
Prints the secret once.

Usage:
  INIT_KEY_USER_ID=1 python scripts/create_initial_key.py
  INIT_KEY_NAME=admin INIT_KEY_DAYS=90 INIT_KEY_USER_ID=1 python scripts/create_initial_key.py

Set INIT_KEY_SECRET to seed a known secret (e.g. one already distributed to
a client) instead of generating one.
"""

import asyncio
import os
import sys
from pathlib import Path

# Add backend/src to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from src.core.database import AsyncSessionLocal, init_db  # noqa: E402
from src.core.errors import KeyringError  # noqa: E402
from src.core.security import KEY_PREFIX_LENGTH  # noqa: E402
from src.services.api_key_service import ApiKeyService  # noqa: E402


async def create_initial_key() -> int:
    name = os.environ.get("INIT_KEY_NAME", "initial")
    user_id = os.environ.get("INIT_KEY_USER_ID")
    days = os.environ.get("INIT_KEY_DAYS", "365")
    secret = os.environ.get("INIT_KEY_SECRET") or None

    if not user_id:
        print("✗ Missing INIT_KEY_USER_ID environment variable")
        print("  Example: INIT_KEY_USER_ID=1 python scripts/create_initial_key.py")
        return 1

    try:
        owner_id = int(user_id)
        expires_in_days = int(days)
    except ValueError:
        print("✗ INIT_KEY_USER_ID and INIT_KEY_DAYS must be whole numbers")
        return 1

    if secret is not None and len(secret) < 2 * KEY_PREFIX_LENGTH:
        print("✗ INIT_KEY_SECRET is too short (need at least 16 characters)")
        return 1
    if secret is not None and len(secret) > 64:
        print("✗ INIT_KEY_SECRET is too long (at most 64 characters)")
        return 1

    await init_db()

    async with AsyncSessionLocal() as db:
        service = ApiKeyService(db)
        try:
            record = await service.bootstrap_create(
                name=name,
                user_id=owner_id,
                expires_in_days=expires_in_days,
                secret=secret,
            )
            await db.commit()
        except KeyringError as e:
            await db.rollback()
            print(f"✗ {e.message}")
            return 1

    print(f"✓ Created API key '{record.name}' (ID: {record.id}) for user {record.user_id}")
    print(f"  Expires at: {record.expires_at.isoformat()}")
    print(f"  Secret: {record.key}")
    print("\nStore the secret now; pass it as ?key=... or 'Authorization: Bearer ...'.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(create_initial_key()))
