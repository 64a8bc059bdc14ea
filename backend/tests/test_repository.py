"""Tests for owner-scoped assignment storage."""

from datetime import date, datetime

import pytest

from app.errors import AuthError, NotFoundError, PersistenceError
from app.repository import AssignmentRepository


def _fields(**overrides):
	fields = {
		"assignment_type": "Essay",
		"subject": "History",
		"details": "Causes of the war",
		"page_count": 5,
		"due_date": date(2030, 1, 15),
		"estimated_hours_min": 5,
		"estimated_hours_max": 8,
		"breakdown": [{"phase": "Research", "hours": 2}],
		"start_date": date(2030, 1, 10),
		"reasoning": "Typical essay.",
		"tips": ["Start early"],
		"completed": False,
	}
	fields.update(overrides)
	return fields


@pytest.fixture
def repo(db_session):
	return AssignmentRepository(db_session)


def test_insert_round_trips_list_columns(repo):
	record = repo.insert("alice", _fields())
	assert record.id
	assert record.user_id == "alice"
	assert record.completed is False
	assert record.breakdown[0].phase == "Research"
	assert record.tips == ["Start early"]
	assert repo.get(record.id, "alice") == record


def test_list_is_newest_first_and_owner_scoped(repo):
	older = repo.insert("alice", _fields(subject="Older", created_at=datetime(2030, 1, 1, 9)))
	newer = repo.insert("alice", _fields(subject="Newer", created_at=datetime(2030, 1, 2, 9)))
	repo.insert("bob", _fields(subject="Not yours"))
	assert [r.id for r in repo.list_by_owner("alice")] == [newer.id, older.id]


def test_missing_owner_is_not_authenticated(repo):
	with pytest.raises(AuthError):
		repo.list_by_owner(None)
	with pytest.raises(AuthError):
		repo.insert("", _fields())


def test_update_completion(repo):
	record = repo.insert("alice", _fields())
	stamp = datetime(2030, 1, 14, 18, 30)
	updated = repo.update(record.id, "alice", {"actual_hours": 6.5, "completed": True, "completed_at": stamp})
	assert updated.completed is True
	assert updated.actual_hours == 6.5
	assert updated.completed_at == stamp


def test_update_other_owners_record_is_not_found(repo):
	record = repo.insert("alice", _fields())
	with pytest.raises(NotFoundError):
		repo.update(record.id, "bob", {"actual_hours": 1.0})
	with pytest.raises(NotFoundError):
		repo.update("does-not-exist", "alice", {"actual_hours": 1.0})


def test_update_rejects_estimate_columns(repo):
	record = repo.insert("alice", _fields())
	with pytest.raises(PersistenceError):
		repo.update(record.id, "alice", {"estimated_hours_min": 1})


def test_insert_failure_is_persistence_error(repo):
	with pytest.raises(PersistenceError):
		repo.insert("alice", _fields(due_date=None))
	# session is still usable after the rollback
	assert repo.list_by_owner("alice") == []
