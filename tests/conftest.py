"""
Shared fixtures: an in-memory SqliteStore, a field factory and caller factory.
"""

import pytest

from companion_access.models import Caller, CallerEntitlement, Companion, CompanionFields
from companion_access.storage import SqliteStore

CATALOG = [
    {"name": "Neura", "subject": "Science", "topic": "Neural networks of the brain"},
    {"name": "Countsy", "subject": "maths", "topic": "Derivatives and integrals"},
    {"name": "Brainy Bot", "subject": "history", "topic": "World wars"},
    {"name": "Verba", "subject": "language", "topic": "English literature"},
    {"name": "Sol", "subject": "science", "topic": "The solar system"},
]


def build_fields(**overrides) -> CompanionFields:
    data = {
        "name": "Tutor",
        "subject": "science",
        "topic": "Basics",
        "voice": "female",
        "style": "casual",
        "duration": 15,
        "color": "#E5D0FF",
    }
    data.update(overrides)
    return CompanionFields(**data)


def build_companion(companion_id: str, **overrides) -> Companion:
    fields = build_fields(**overrides).model_dump()
    return Companion(id=companion_id, author="author_1", created_at="2025-01-01T00:00:00.000000Z", **fields)


@pytest.fixture
def store():
    s = SqliteStore(path=":memory:")
    yield s
    s.close()


@pytest.fixture
def make_fields():
    return build_fields


@pytest.fixture
def seeded_store(store):
    """Store holding CATALOG, inserted in order, authored by 'author_1'."""
    for row in CATALOG:
        store.insert_companion(build_fields(**row), author="author_1")
    return store


@pytest.fixture
def make_caller():
    def _make(user_id: str = "user_1", plan: str | None = None, features=()) -> Caller:
        return Caller(
            user_id=user_id,
            entitlement=CallerEntitlement(plan=plan, features=frozenset(features)),
        )

    return _make
