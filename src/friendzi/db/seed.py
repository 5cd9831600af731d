"""Demo data for local development.

Everything goes through the same service functions the API uses, so every
denormalized counter comes out consistent. Idempotent: if the demo users
already exist nothing is written.

Usage:
    python -m friendzi.db.seed
"""

from __future__ import annotations

import asyncio

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from friendzi.auth.service import register_user
from friendzi.config import get_settings
from friendzi.database import close_db, get_session, init_db
from friendzi.db.models import User
from friendzi.messaging.service import get_or_create_conversation, send_message
from friendzi.middleware.logging import setup_logging
from friendzi.posts.service import add_comment, create_post, like_post
from friendzi.users.follow_service import follow_user
from friendzi.users.service import update_profile

logger = structlog.get_logger()

DEMO_PASSWORD = "Test1234!"

DEMO_USERS: list[dict] = [
    {
        "username": "thomas",
        "email": "thomas@example.com",
        "full_name": "Thomas",
        "bio": "Passionate developer",
        "avatar_url": "https://i.pravatar.cc/150?img=1",
    },
    {
        "username": "marie",
        "email": "marie@example.com",
        "full_name": "Marie",
        "bio": "Designer and content creator",
        "avatar_url": "https://i.pravatar.cc/150?img=5",
    },
    {
        "username": "lucas",
        "email": "lucas@example.com",
        "full_name": "Lucas",
        "bio": "Amateur photographer",
        "avatar_url": "https://i.pravatar.cc/150?img=3",
    },
]

# (follower, followed) by index into DEMO_USERS
DEMO_FOLLOWS: list[tuple[int, int]] = [(0, 1), (0, 2), (1, 0), (2, 0)]

# (author, content, image_url)
DEMO_POSTS: list[tuple[int, str, str | None]] = [
    (0, "Hello everyone! Here is my first post on FriendZi", None),
    (
        1,
        "Working on an exciting new project",
        "https://i.pinimg.com/736x/e6/ab/fe/e6abfe9b7b49021f8bdc8c53e1faa45b.jpg",
    ),
    (
        2,
        "A beautiful day for taking photos!",
        "https://i.pinimg.com/736x/74/45/82/744582341c579a459b4bd319e7bc1915.jpg",
    ),
]

# (user, post)
DEMO_LIKES: list[tuple[int, int]] = [(0, 1), (1, 0), (2, 0), (2, 1)]

# (author, post, content)
DEMO_COMMENTS: list[tuple[int, int, str]] = [
    (1, 0, "Great post!"),
    (2, 0, "Welcome to FriendZi!"),
    (0, 1, "Sounds interesting, can you tell us more?"),
]

# (sender, recipient, content); one conversation per pair
DEMO_MESSAGES: list[tuple[int, int, str]] = [
    (0, 1, "Hi Marie, how are you?"),
    (1, 0, "Hi Thomas! I'm fine, and you?"),
    (0, 2, "Hey Lucas, I saw your latest photos. They are superb!"),
]


async def seed_demo_data(db: AsyncSession) -> bool:
    """Create the demo data set. Returns False if it was already present."""
    usernames = [u["username"] for u in DEMO_USERS]
    existing = (
        await db.execute(select(func.count()).select_from(User).where(User.username.in_(usernames)))
    ).scalar_one()
    if existing:
        logger.info("seed_skipped", existing_users=existing)
        return False

    users: list[User] = []
    for data in DEMO_USERS:
        user = await register_user(
            db,
            username=data["username"],
            email=data["email"],
            password=DEMO_PASSWORD,
            full_name=data["full_name"],
        )
        user = await update_profile(db, user, bio=data["bio"], avatar_url=data["avatar_url"])
        user.is_verified = True
        users.append(user)
    await db.flush()

    for follower, followed in DEMO_FOLLOWS:
        await follow_user(db, users[follower].id, users[followed].id)

    posts = [
        await create_post(db, users[author].id, content, image_url) for author, content, image_url in DEMO_POSTS
    ]

    for liker, post in DEMO_LIKES:
        await like_post(db, posts[post].id, users[liker].id)

    for author, post, content in DEMO_COMMENTS:
        await add_comment(db, posts[post].id, users[author].id, content)

    for sender, recipient, content in DEMO_MESSAGES:
        conversation, _ = await get_or_create_conversation(db, users[sender].id, users[recipient].id)
        await send_message(db, conversation.id, users[sender].id, content)

    await db.commit()
    logger.info(
        "seed_completed",
        users=len(users),
        posts=len(posts),
        likes=len(DEMO_LIKES),
        comments=len(DEMO_COMMENTS),
        messages=len(DEMO_MESSAGES),
    )
    return True


async def main() -> None:
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)
    try:
        async for db in get_session():
            await seed_demo_data(db)
            break
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
