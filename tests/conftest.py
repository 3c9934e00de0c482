# Test configuration
import os
from collections import defaultdict
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

# Set test environment variables BEFORE importing fitbook modules
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_ANON_KEY"] = "test-anon-key"
os.environ["SUPABASE_SERVICE_KEY"] = "test-service-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-for-testing-only-32chars"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["MAX_RETRIES"] = "0"
os.environ["REQUEST_TIMEOUT"] = "5"
os.environ["PROVISION_MAX_ATTEMPTS"] = "2"
os.environ["PROVISION_POLL_INTERVAL"] = "0"

TEST_JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]


class FakeQuery:
    """
    Stand-in for a PostgREST query builder.

    Every builder method is recorded and returns the query itself;
    ``execute()`` returns the queued outcome or raises it.
    """

    def __init__(self, table: str, outcome: Any) -> None:
        self.table_name = table
        self.outcome = outcome
        self.calls: List[tuple] = []

    def __getattr__(self, name: str):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return method

    def execute(self) -> SimpleNamespace:
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return SimpleNamespace(data=self.outcome)

    def called(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]


class FakeSupabase:
    """Supabase client whose tables answer with queued results in order."""

    def __init__(self) -> None:
        self.responses: Dict[str, List[Any]] = defaultdict(list)
        self.queries: List[FakeQuery] = []

    def queue(self, table: str, *outcomes: Any) -> "FakeSupabase":
        self.responses[table].extend(outcomes)
        return self

    def table(self, name: str) -> FakeQuery:
        outcomes = self.responses[name]
        query = FakeQuery(name, outcomes.pop(0) if outcomes else [])
        self.queries.append(query)
        return query

    def queries_for(self, table: str) -> List[FakeQuery]:
        return [query for query in self.queries if query.table_name == table]


@pytest.fixture
def fake_db():
    """Empty fake Supabase client."""
    return FakeSupabase()


@pytest.fixture
def session_row():
    """A training_sessions row as PostgREST returns it."""
    return {
        "id": 11,
        "trainer_id": "trainer-1",
        "session_date": "2025-01-06",
        "start_time": "09:00:00",
        "end_time": "10:00:00",
        "session_type": "personal",
        "price": 50,
        "notes": "Bring a towel",
        "status": "available",
        "created_at": "2025-01-01T08:00:00+00:00",
    }


@pytest.fixture
def auth_user():
    """Auth user object as returned by supabase-py."""
    return SimpleNamespace(
        id="user-1",
        email="jane@example.com",
        user_metadata={"full_name": "Jane Doe"},
        email_confirmed_at=None,
        created_at="2025-01-01T08:00:00+00:00",
    )


@pytest.fixture
def auth_session():
    """Auth session object as returned by supabase-py."""
    return SimpleNamespace(
        access_token="test-access-token",
        refresh_token="test-refresh-token",
        expires_in=3600,
        expires_at=1735722000,
        token_type="bearer",
    )
