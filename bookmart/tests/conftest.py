from __future__ import annotations

import pytest

from bookmart.core.session import SessionProvider
from bookmart.core.supabase_repo import SupabaseRepo
from bookmart.tests.fakes import FakeSupabase


@pytest.fixture
def fake_client() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def repo(fake_client: FakeSupabase) -> SupabaseRepo:
    return SupabaseRepo(client=fake_client)


@pytest.fixture
def session_provider(fake_client: FakeSupabase) -> SessionProvider:
    return SessionProvider(fake_client)
