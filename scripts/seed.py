"""Database seeder: roles, categories, an admin account and sample articles."""
import asyncio
import argparse
import random
import time

from blog.config import settings
from blog.database import engine, async_session, Base, ensure_roles
from blog.identity import SqlIdentityService
from blog.models import Article, Category
from blog.services import article_service, user_service

CATEGORIES = ["News", "Programming", "Databases", "Web", "Misc"]

TAGS = ["python", "fastapi", "postgresql", "sqlalchemy", "docker",
        "testing", "security", "web", "devops", "tutorial"]


async def seed(admin_password: str, num_articles: int):
    print(f"Seeding: {len(CATEGORIES)} categories, 2 users, {num_articles} articles")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        roles = await ensure_roles(session, settings.ROLES)
        print(f"  Created roles: {', '.join(roles)}")

        categories = []
        for name in CATEGORIES:
            category = Category(name=name)
            session.add(category)
            categories.append(category)
        await session.flush()
        print(f"  Created {len(categories)} categories")

        identity = SqlIdentityService(session)
        admin = await user_service.create_user(
            session,
            identity,
            username="admin",
            email="admin@example.com",
            full_name="Administrator",
            password=admin_password,
            roles=[settings.ADMIN_ROLE, settings.DEFAULT_ROLE],
        )
        writer = await user_service.create_user(
            session,
            identity,
            username="writer",
            email="writer@example.com",
            full_name="Staff Writer",
            password=admin_password,
            roles=[settings.DEFAULT_ROLE],
        )
        print(f"  Created users: {admin.username}, {writer.username}")

        for i in range(num_articles):
            article = Article(
                title=f"Article {i}: notes on {random.choice(TAGS)}",
                content=f"This is the full content of article {i}. " * 10,
                category_id=random.choice(categories).id,
                author_id=random.choice([admin, writer]).id,
            )
            tag_names = random.sample(TAGS, k=random.randint(1, 3))
            article_service.attach_tags(article, await article_service.resolve_tags(session, tag_names))
            session.add(article)
        await session.flush()

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--admin-password", default="Admin123!", help="Password for the seeded accounts")
    parser.add_argument("--articles", type=int, default=10, help="Number of sample articles")
    args = parser.parse_args()
    asyncio.run(seed(args.admin_password, args.articles))


if __name__ == "__main__":
    main()
