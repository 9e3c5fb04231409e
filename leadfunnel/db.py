import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List, Optional
from uuid import uuid4

from sqlalchemy import JSON, Column, Text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import Field, SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession


DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite+aiosqlite:///./leadfunnel.db",
)


def _create_engine(url: str) -> AsyncEngine:
    kwargs = {"echo": False, "future": True}
    if not url.startswith("sqlite"):
        kwargs["pool_pre_ping"] = True
    return create_async_engine(url, **kwargs)


engine: AsyncEngine = _create_engine(DATABASE_URL)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
)


def configure_engine(url: str) -> AsyncEngine:
    """Point the module-level engine and session factory at ``url``."""
    global engine, async_session_factory
    engine = _create_engine(url)
    async_session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
    )
    return engine


class Submission(SQLModel, table=True):
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    name: str = ""
    email: str = ""
    phone: str = ""
    role: str = ""
    company_name: str = Field(default="", index=True)
    website: str = ""
    team_size: str = ""
    company_summary: str = Field(default="", sa_column=Column(Text))
    website_insights: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    industries: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    department_level: str = ""
    business_domains: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    other_business_domain: str = ""
    challenges: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    challenge_clarification: str = ""
    ai_stage: str = ""
    ai_use_case: str = Field(default="", sa_column=Column(Text))
    solutions: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    timeline: str = ""
    budget: str = ""
    generated_quote: Optional[str] = Field(default="", sa_column=Column(Text))
    is_quote_loading: Optional[bool] = False
    internal_notes: Optional[str] = Field(default="", sa_column=Column(Text))
    status: str = Field(default="new", index=True)  # new, in_progress, proposal_sent, closed
    submitted_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    proposal_sent_at: Optional[datetime] = None


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
