"""Database seeder for local development and demos.

Comments are inserted through ``services.moderation`` so every article's
``comment_count`` matches its approved comments from the start.
"""
import argparse
import asyncio
import random
import time
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from newsdesk.database import Base, engine, session_scope
from newsdesk.models import (
    Article,
    ArticleStatus,
    Category,
    Comment,
    CommentStatus,
    ContactMessage,
    NewsletterSubscriber,
    User,
    UserRole,
)
from newsdesk.services import moderation
from newsdesk.services.article_service import slugify

CATEGORIES = ["Politics", "Economy", "World", "Sport", "Culture", "Science",
              "Technology", "Health", "Environment", "Opinion"]

COMMENT_STATUSES = [CommentStatus.PENDING, CommentStatus.APPROVED, CommentStatus.REJECTED]


async def seed(small: bool = False):
    num_users = 8 if small else 40
    num_articles = 50 if small else 2000
    max_comments = 3 if small else 8

    print(f"Seeding: {num_users} users, {num_articles} articles, up to {max_comments} comments each")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with session_scope() as session:
        now = datetime.now(timezone.utc)

        categories = []
        for position, name in enumerate(CATEGORIES):
            category = Category(name=name, slug=slugify(name), display_order=position, active=True)
            session.add(category)
            categories.append(category)
        await session.flush()
        print(f"  Created {len(categories)} categories")

        roles = [UserRole.ADMIN, UserRole.EDITOR] + [UserRole.AUTHOR] * 3 + [UserRole.CONTRIBUTOR]
        users = []
        for i in range(num_users):
            user = User(
                username=f"staff_{i:03d}",
                email=f"staff_{i:03d}@newsdesk.example",
                display_name=f"Staff {i}",
                role=roles[i % len(roles)],
                created_at=now - timedelta(days=random.randint(0, 180)),
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users")

        total_comments = 0
        for i in range(num_articles):
            created = now - timedelta(days=random.randint(0, 90), hours=random.randint(0, 23))
            status = random.choices(
                [ArticleStatus.PUBLISHED, ArticleStatus.DRAFT, ArticleStatus.ARCHIVED],
                weights=[8, 1, 1],
            )[0]
            article = Article(
                title=f"Story {i}: developments in {random.choice(CATEGORIES).lower()}",
                slug=f"story-{i}",
                content=f"Full text of story {i}. " * 30,
                excerpt=f"Short summary of story {i}.",
                status=status,
                featured=random.random() < 0.05,
                view_count=random.randint(0, 20000),
                comment_count=0,
                published_at=created if status is ArticleStatus.PUBLISHED else None,
                created_at=created,
                user_id=random.choice(users).id,
            )
            article.categories.extend(random.sample(categories, k=random.randint(1, 3)))
            session.add(article)
            await session.flush()

            for _ in range(random.randint(0, max_comments)):
                await moderation.create(
                    session,
                    article.id,
                    content="Thanks for the coverage, very informative.",
                    user_name=f"reader_{random.randint(1, 500)}",
                    status=random.choice(COMMENT_STATUSES),
                )
                total_comments += 1

            if (i + 1) % 250 == 0:
                print(f"  {i + 1} articles created")

        for i in range(num_users * 5):
            session.add(NewsletterSubscriber(email=f"reader_{i}@mail.example", active=random.random() > 0.1))
        for i in range(num_users):
            session.add(ContactMessage(
                name=f"Reader {i}",
                email=f"reader_{i}@mail.example",
                subject="Question about an article",
                message="Could you share the sources of this story?",
                is_read=random.random() > 0.5,
            ))

        approved = (await session.execute(
            select(func.count()).select_from(Comment).where(Comment.status == CommentStatus.APPROVED)
        )).scalar_one()
        counted = (await session.execute(select(func.coalesce(func.sum(Article.comment_count), 0)))).scalar_one()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Articles: {num_articles}")
    print(f"  Comments: {total_comments} ({approved} approved, comment_count total {counted})")
    print(f"  Categories: {len(CATEGORIES)}")


def main():
    parser = argparse.ArgumentParser(description="Seed the newsdesk database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (50 articles)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
