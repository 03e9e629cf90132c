"""Print the users stored in the configured database.

Usage: python -m scripts.list_users
"""

import asyncio
import logging

from config import get_settings
from userdesk.database.engine import close_db, create_tables, get_async_session, init_db
from userdesk.database.repository import UserRepository

logger = logging.getLogger(__name__)


async def main() -> int:
    settings = get_settings()

    try:
        await init_db(settings)
        await create_tables()
    except Exception as exc:
        print("Failed to initialize DB (check DATABASE_URL and dependencies):", exc)
        return 1

    try:
        async for session in get_async_session():
            users = await UserRepository(session).find_all()

            if not users:
                print("No users found in database.")
            else:
                print(f"Found {len(users)} user(s):")
                for u in users:
                    print(f"id={u.id} username={u.username!r} email={u.email!r} is_active={u.is_active}")
            break
    finally:
        await close_db()

    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
