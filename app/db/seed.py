"""
Optional development seeding script.
"""

import asyncio

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core import database
from app.handlers.ledger import record_access
from app.models.access_event import AccessKind
from app.models.resource import Resource

SAMPLE_RESOURCES = [
    (21, "Fractions Worksheet", "Grade 4 practice on equivalent fractions"),
    (22, "Photosynthesis Slides", "Grade 7 science lesson deck"),
    (23, "Reading Comprehension Pack", "Short passages with questions"),
]


async def seed_data(session_factory: async_sessionmaker = None) -> None:
    """
    Seed database with sample data for development.

    Safe to re-run: the legacy drift and the sample traffic are only applied
    by the run that creates the sample resources.
    """
    session_factory = session_factory or database.AsyncSessionLocal

    async with session_factory() as session:
        created = []
        for resource_id, title, description in SAMPLE_RESOURCES:
            if await session.get(Resource, resource_id):
                continue
            resource = Resource(id=resource_id, title=title, description=description)
            if resource_id == 22:
                # Legacy state: counter bumped by the old direct-UPDATE path, no events behind it
                resource.view_count = 5
            session.add(resource)
            created.append(resource_id)

        if not created:
            print("Sample resources already exist, nothing to seed")
            return

        await session.commit()

        print(f"Created {len(created)} sample resources")

        if 21 in created:
            for _ in range(3):
                await record_access(session, 21, 1, AccessKind.VIEW, {"ip_address": "127.0.0.1"})
            await record_access(session, 21, 1, AccessKind.DOWNLOAD, {"ip_address": "127.0.0.1"})
        if 23 in created:
            await record_access(session, 23, None, AccessKind.VIEW, {})

        print("Recorded sample access events")
        print("Seed data created successfully!")


if __name__ == "__main__":
    async def main():
        await database.init_db()
        await seed_data()
        await database.close_db()

    asyncio.run(main())
