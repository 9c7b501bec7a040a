"""
Pytest Configuration and Fixtures.

Provides:
- In-memory trend store and the packaged scenario corpus
- A realtime analyzer wired to both
- SQLite in-memory session factory for the SQL trend store
- Sample conversations, case contexts and twin inputs
"""

import os

# Settings are read at import time: pin the test environment first.
os.environ["ENVIRONMENT"] = "testing"
os.environ["TREND_STORE_BACKEND"] = "memory"
os.environ["EXTERNAL_GENERATOR_ENABLED"] = "false"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from casecast.db.engine import Base
from casecast.db.models import TrendSnapshotRow  # noqa: F401 — register the table
from casecast.engine.realtime import RealtimeAnalyzer
from casecast.engine.recommendations import load_corpus
from casecast.schemas.insights import ChatMessage, IntakeSummary
from casecast.schemas.twin import TwinSimulationInput
from casecast.store.trend_store import InMemoryTrendStore

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# Wednesday; a fixed clock keeps window arithmetic exact.
FIXED_NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)


# ── Trend store & pipeline ───────────────────────────────────────────────


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def memory_store() -> InMemoryTrendStore:
    return InMemoryTrendStore()


@pytest.fixture(scope="session")
def corpus():
    return load_corpus()


@pytest.fixture
def analyzer(memory_store, corpus) -> RealtimeAnalyzer:
    return RealtimeAnalyzer(store=memory_store, corpus=corpus)


# ── SQL backend ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory database per test."""
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


# ── Sample data ──────────────────────────────────────────────────────────


@pytest.fixture
def threat_messages() -> list[ChatMessage]:
    """Client reports a threat and an imminent filing deadline."""
    return [
        ChatMessage(role="assistant", content="어떤 도움이 필요하신가요?"),
        ChatMessage(role="user", content="전 남편에게 협박 문자를 계속 받고 있어요."),
        ChatMessage(role="user", content="소송 기한이 이번 주라서 너무 급해요."),
    ]


@pytest.fixture
def calm_messages() -> list[ChatMessage]:
    return [ChatMessage(role="user", content="I would like a quote for a background check.")]


@pytest.fixture
def intake_summary() -> IntakeSummary:
    return IntakeSummary(
        case_title="Harassment by former spouse",
        case_type="Stalking / protection",
        primary_intent="Secure evidence for a protection order",
        urgency="urgent",
        objective="Obtain a restraining order",
        key_facts=["threatening texts", "late-night visits"],
        missing_details=["Date of the first threat"],
        recommended_documents=["Text message screenshots", "Call logs"],
        next_questions=["Has the police been contacted?", "Any witnesses?", "Any injuries?"],
    )


@pytest.fixture
def twin_input() -> TwinSimulationInput:
    """Affair case with every fixed factor at its default."""
    return TwinSimulationInput(scenario_category="affair")
