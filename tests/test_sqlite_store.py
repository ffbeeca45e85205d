"""
Tests for SqliteStore: schema, reads, writes and error wrapping.
"""

import pytest

from companion_access.errors import StoreError
from companion_access.storage import SqliteStore


def test_insert_companion_assigns_id_and_timestamp(store, make_fields):
    companion_id = store.insert_companion(make_fields(name="Neura"), author="user_1")
    companion = store.get_companion(companion_id)

    assert companion is not None
    assert companion.id == companion_id
    assert companion.author == "user_1"
    assert companion.created_at.endswith("Z")


def test_insert_companion_ids_are_unique(store, make_fields):
    a = store.insert_companion(make_fields(), author="user_1")
    b = store.insert_companion(make_fields(), author="user_1")
    assert a != b


def test_get_companion_missing_returns_none(store):
    assert store.get_companion("does-not-exist") is None


def test_list_by_ids_ignores_unknown_ids(store, make_fields):
    a = store.insert_companion(make_fields(name="A"), author="user_1")
    found = store.list_companions_by_ids([a, "ghost"])
    assert [c.id for c in found] == [a]
    assert store.list_companions_by_ids([]) == []


def test_author_queries(store, make_fields):
    store.insert_companion(make_fields(name="A"), author="user_1")
    store.insert_companion(make_fields(name="B"), author="user_1")
    store.insert_companion(make_fields(name="C"), author="user_2")

    assert store.count_companions_by_author("user_1") == 2
    assert store.count_companions_by_author("nobody") == 0
    assert {c.name for c in store.list_companions_by_author("user_2")} == {"C"}


def test_recent_sessions_newest_first_and_scoped(store):
    store.insert_session("c1", "user_1", created_at="2025-01-01T00:00:01.000000Z")
    store.insert_session("c2", "user_2", created_at="2025-01-01T00:00:02.000000Z")
    store.insert_session("c3", "user_1", created_at="2025-01-01T00:00:03.000000Z")

    assert [s.companion_id for s in store.list_recent_sessions(10)] == ["c3", "c2", "c1"]
    assert [s.companion_id for s in store.list_recent_sessions(10, user_id="user_1")] == ["c3", "c1"]
    assert [s.companion_id for s in store.list_recent_sessions(2)] == ["c3", "c2"]


def test_recent_sessions_same_timestamp_newest_insert_first(store):
    ts = "2025-01-01T00:00:00.000000Z"
    store.insert_session("first", "user_1", created_at=ts)
    store.insert_session("second", "user_1", created_at=ts)

    assert [s.companion_id for s in store.list_recent_sessions(10)] == ["second", "first"]


def test_file_backed_store_persists(tmp_path, make_fields):
    path = str(tmp_path / "nested" / "companions.db")
    s = SqliteStore(path=path)
    created_id = s.insert_companion(make_fields(name="Persisted"), author="user_1")
    s.close()

    reopened = SqliteStore(path=path)
    try:
        assert reopened.get_companion(created_id).name == "Persisted"
    finally:
        reopened.close()


def test_closed_connection_raises_store_error(make_fields):
    s = SqliteStore(path=":memory:")
    s.close()

    with pytest.raises(StoreError):
        s.get_companion("anything")
    with pytest.raises(StoreError):
        s.insert_companion(make_fields(), author="user_1")


def test_malformed_row_raises_store_error(store):
    store.conn.execute(
        "INSERT INTO companions (id, name, subject, topic, voice, style, duration, color, author, created_at) "
        "VALUES ('bad', '', 's', 't', 'v', 'st', 5, NULL, 'user_1', '2025-01-01T00:00:00Z')"
    )
    store.conn.commit()

    with pytest.raises(StoreError, match="malformed companion row"):
        store.get_companion("bad")


def test_casefold_function_registered(store):
    row = store.conn.execute("SELECT casefold('ÉCONOMIE Straße') AS v, casefold(NULL) AS n").fetchone()
    assert row["v"] == "économie strasse"
    assert row["n"] is None
