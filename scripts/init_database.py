#!/usr/bin/env python3
"""
Database initialization script
Creates the tables and seeds a starter topic catalog
"""

import asyncio
import sys
from pathlib import Path
from typing import Dict

from sqlalchemy import select, func, delete

# Make the app package importable when run from anywhere
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.core.config import settings  # noqa: E402
from app.core.database import DatabaseManager  # noqa: E402
from app.core.redis_client import redis_manager  # noqa: E402
from app.models.catalog import Topic, TopicItem  # noqa: E402

# Starter catalog: topic -> (description, items)
STARTER_TOPICS: Dict[str, tuple] = {
    "Pizza Toppings": ("What goes on top", [
        "Cheese", "Pepperoni", "Mushrooms", "Olives", "Pineapple", "Basil", "Ham", "Onion",
    ]),
    "Vacation Spots": ("Where you would rather be", [
        "Beach", "Mountains", "Big City", "Countryside", "Desert", "Lake Cabin", "Cruise Ship", "Theme Park",
    ]),
    "Breakfast Foods": ("The most important meal", [
        "Pancakes", "Waffles", "Eggs", "Bacon", "Cereal", "Toast", "Oatmeal", "Fruit Bowl",
    ]),
    "Movie Genres": ("Friday night picks", [
        "Comedy", "Horror", "Romance", "Action", "Sci-Fi", "Documentary", "Animation", "Thriller",
    ]),
    "Desserts": ("Always room for one more", [
        "Ice Cream", "Cheesecake", "Brownies", "Apple Pie", "Tiramisu", "Cookies", "Donuts", "Macarons",
    ]),
    "Weekend Activities": ("How the days off go", [
        "Sleeping In", "Hiking", "Gaming", "Brunch", "Cleaning", "Reading", "Sports", "Movie Marathon",
    ]),
}


async def seed_topics(db: DatabaseManager, topics: Dict[str, tuple] = STARTER_TOPICS, reset: bool = False) -> int:
    """Insert the starter catalog; returns the number of topics written (0 when the catalog already has rows)"""
    async with db.get_session() as session:
        count = (await session.execute(select(func.count(Topic.id)))).scalar_one()
        if count and not reset:
            return 0
        if count:
            await session.execute(delete(TopicItem))
            await session.execute(delete(Topic))

        for name, (description, items) in topics.items():
            topic = Topic(name=name, description=description)
            session.add(topic)
            await session.flush()
            for index, item in enumerate(items):
                session.add(TopicItem(topic_id=topic.id, name=item, sort_order=index))

    return len(topics)


async def check_redis() -> bool:
    """Redis is optional; it only carries realtime fan-out between workers"""
    print("\nChecking Redis connection...")
    try:
        await redis_manager.initialize()
    except Exception as e:
        print(f"Redis connection failed: {e}")
        return False
    available = redis_manager.is_available
    if available:
        print(f"Redis connected: {settings.REDIS_URL}")
    else:
        print("Redis unavailable; realtime events stay within one worker")
    await redis_manager.close()
    return available


async def main() -> int:
    print("=" * 50)
    print("  Knowsy - database initialization")
    print("=" * 50)
    print()
    print(f"Database: {settings.DATABASE_URL}")

    db = DatabaseManager()
    try:
        await db.initialize()
        await db.create_all()
        print("Tables created")
    except Exception as e:
        print(f"\nFailed to create tables: {e}")
        return 1

    try:
        written = await seed_topics(db)
        if not written:
            response = input("Topic catalog already has rows. Replace it? (y/N): ").strip().lower()
            if response == "y":
                written = await seed_topics(db, reset=True)
        if written:
            print(f"Seeded {written} topics")
        else:
            print("Kept the existing topic catalog")
    finally:
        await db.close()

    await check_redis()

    print("\n" + "=" * 50)
    print("  Database initialization complete")
    print("=" * 50)
    print("\nStart the server with:")
    print("  python run.py")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
