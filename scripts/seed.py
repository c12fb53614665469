"""Database seeder for local development of the chat API."""
import asyncio
import argparse
import random
import time

from app import entities
from app.database import engine, Base
from app.schemas import ThreadCreate, UserCredentials
from app.dependencies import (
    get_authentication_service,
    get_comment_service,
    get_identity_service,
    get_thread_service,
)
from app.storage import storage

TOPICS = ["python", "fastapi", "postgresql", "docker", "kubernetes", "react",
          "typescript", "aws", "devops", "testing", "performance", "security"]


async def seed(small: bool = False):
    num_users = 5 if small else 30
    num_threads = 10 if small else 200
    comments_per_thread = 3 if small else 15

    print(f"Seeding: {num_users} users, {num_threads} threads, up to {comments_per_thread} comments each")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    # The request-scoped factories are plain functions; call them directly.
    auth = get_authentication_service(storage, get_identity_service())
    threads = get_thread_service(storage)
    comments = get_comment_service(storage)

    users = []
    for i in range(num_users):
        users.append(await auth.sign_up(UserCredentials(name=f"user_{i:04d}", password="password123")))
    print(f"  Created {len(users)} users (password: password123)")

    total_comments = 0
    for i in range(num_threads):
        thread = await threads.create_thread(
            ThreadCreate(title=f"Thread {i}: talking about {random.choice(TOPICS)}")
        )
        for _ in range(random.randint(1, comments_per_thread)):
            author = random.choice(users)
            await comments.create_comment(
                entities.Comment(
                    content=f"Comment by {author.name} on {random.choice(TOPICS)}.",
                    thread_id=thread.id,
                    author=entities.Author(id=author.id, name=author.name),
                )
            )
            total_comments += 1
    print(f"  Created {num_threads} threads")

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Threads: {num_threads}")
    print(f"  Comments: {total_comments}")


def main():
    parser = argparse.ArgumentParser(description="Seed the chat database")
    parser.add_argument("--small", action="store_true", help="Use a small dataset")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
