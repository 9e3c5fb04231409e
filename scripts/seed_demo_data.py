#!/usr/bin/env python
import asyncio
import random
from datetime import datetime, timedelta

from faker import Faker

from leadfunnel.agents.proposal_gen import draft as draft_proposal
from leadfunnel.constants import (
    AI_STAGE_OPTIONS,
    BUSINESS_DOMAIN_OPTIONS,
    CHALLENGE_OPTIONS,
    DEPARTMENT_LEVEL_OPTIONS,
    INDUSTRY_OPTIONS,
    SOLUTION_OPTIONS,
    TEAM_SIZE_OPTIONS,
    TIMELINE_OPTIONS,
)
from leadfunnel.db import Submission, get_session, init_db
from leadfunnel.schemas import SubmissionStatus


async def seed_submission(fake: Faker) -> None:
    submitted_at = datetime.utcnow() - timedelta(days=random.randint(0, 180))
    status = random.choice(list(SubmissionStatus)).value
    company = fake.company()

    submission = Submission(
        name=fake.name(),
        email=fake.company_email(),
        phone=fake.phone_number(),
        role=fake.job(),
        company_name=company,
        website=f"https://{fake.domain_name()}",
        team_size=random.choice(TEAM_SIZE_OPTIONS),
        company_summary=fake.paragraph(nb_sentences=4),
        website_insights=fake.words(nb=3),
        industries=random.sample(INDUSTRY_OPTIONS, k=random.randint(1, 2)),
        department_level=random.choice(DEPARTMENT_LEVEL_OPTIONS),
        business_domains=random.sample(BUSINESS_DOMAIN_OPTIONS, k=random.randint(1, 3)),
        challenges=random.sample(CHALLENGE_OPTIONS, k=random.randint(1, 3)),
        ai_stage=random.choice(AI_STAGE_OPTIONS),
        ai_use_case=fake.sentence(),
        solutions=random.sample(SOLUTION_OPTIONS, k=random.randint(1, 3)),
        timeline=random.choice(TIMELINE_OPTIONS),
        budget=str(random.randrange(5000, 150000, 2500)),
        status=status,
        submitted_at=submitted_at,
    )
    if status in {SubmissionStatus.PROPOSAL_SENT.value, SubmissionStatus.CLOSED.value}:
        submission.proposal_sent_at = submitted_at + timedelta(hours=random.randint(4, 96))
    submission.generated_quote = await draft_proposal(submission)

    async with get_session() as session:
        session.add(submission)
        await session.commit()


async def main(total: int = 20) -> None:
    await init_db()
    fake = Faker()
    for _ in range(total):
        await seed_submission(fake)
    print(f"Seeded {total} demo submissions.")


if __name__ == "__main__":
    asyncio.run(main())
