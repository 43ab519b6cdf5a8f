"""
Create the conversation schema

Usage:
    python scripts/init_db.py
    DATABASE_URL=sqlite+aiosqlite:///./chat.db python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from loguru import logger

from support_chat.infra.database import Database


async def init_db():
    database = Database()
    try:
        await database.async_init()
        logger.info(f"✅ Schema ready at {database.url.render_as_string(hide_password=True)}")
    finally:
        await database.close()


def main():
    asyncio.run(init_db())


if __name__ == "__main__":
    main()
