"""Dev seeding helper - approved admin profile and example questions."""

import asyncio
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.saintshelp.config import get_settings
from backend.saintshelp.db.engine import (
    create_async_engine_from_settings,
    create_async_session_factory,
)
from backend.saintshelp.db.models import Profile, QuestionPrompt

# Must match the ``sub`` claim of locally minted dev tokens
DEV_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")

DEV_QUESTIONS = (
    "How can I grow in humility?",
    "What do the Fathers say about anger?",
    "How should I pray when I feel distracted?",
    "What is the meaning of watchfulness?",
    "How do I forgive someone who hurt me?",
    "What is spiritual sloth and how is it overcome?",
)


async def seed_dev(session: AsyncSession) -> None:
    """Seed an approved admin dev profile and the example questions.

    Idempotent - safe to run multiple times.
    """
    profile = await session.get(Profile, DEV_USER_ID)
    if profile is None:
        print(f"Creating dev profile with id {DEV_USER_ID}...")
        session.add(
            Profile(
                user_id=DEV_USER_ID,
                email="dev@example.com",
                status="approved",
                is_admin=True,
            )
        )
    else:
        print(f"Dev profile already exists: {profile.email}")

    prompt_count = await session.scalar(select(func.count()).select_from(QuestionPrompt))
    if not prompt_count:
        print(f"Creating {len(DEV_QUESTIONS)} example questions...")
        session.add_all(QuestionPrompt(question_text=q, active=True) for q in DEV_QUESTIONS)

    await session.commit()
    print("Dev seeding complete")


async def main() -> None:
    engine = create_async_engine_from_settings(get_settings())
    session_factory = create_async_session_factory(engine)
    try:
        async with session_factory() as session:
            await seed_dev(session)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
