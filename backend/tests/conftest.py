"""Shared fixtures for the planner tests."""

import os
import tempfile
from datetime import date
from typing import Any, Dict, List, Optional

# Settings are read at import time, so point them somewhere harmless first
_DB_DIR = tempfile.mkdtemp(prefix="planner-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "planner.db")
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ.pop("GEMINI_API_KEY", None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base
from app import models  # noqa: F401  (registers tables on Base.metadata)
from app.schemas import AssignmentRecord


@pytest.fixture
def db_session():
	"""In-memory SQLite session with all tables created."""
	engine = create_engine(
		"sqlite://",
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
		future=True,
	)
	Base.metadata.create_all(bind=engine)
	Session = sessionmaker(bind=engine, autoflush=False, future=True)
	session = Session()
	try:
		yield session
	finally:
		session.close()
		engine.dispose()


_counter = {"n": 0}


def build_record(
	assignment_type: str = "Essay",
	*,
	estimated: tuple = (4, 6),
	actual: Optional[float] = None,
	completed: Optional[bool] = None,
	page_count: Optional[int] = None,
	subject: str = "History",
	details: str = "Write about the causes of the war",
) -> AssignmentRecord:
	_counter["n"] += 1
	return AssignmentRecord(
		id=f"rec-{_counter['n']}",
		user_id="alice",
		assignment_type=assignment_type,
		subject=subject,
		details=details,
		page_count=page_count,
		due_date=date(2030, 1, 1),
		estimated_hours_min=estimated[0],
		estimated_hours_max=estimated[1],
		completed=(actual is not None) if completed is None else completed,
		actual_hours=actual,
	)


@pytest.fixture
def make_record():
	return build_record


class FakeEstimateClient:
	"""Stands in for GeminiClient; returns a canned reply or raises."""

	def __init__(self, reply: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None) -> None:
		self.reply = reply
		self.error = error
		self.prompts: List[str] = []

	async def generate_json(self, prompt: str) -> Dict[str, Any]:
		self.prompts.append(prompt)
		if self.error is not None:
			raise self.error
		return self.reply


@pytest.fixture
def estimate_reply() -> Dict[str, Any]:
	return {
		"totalHours": {"min": 5, "max": 8},
		"breakdown": [
			{"phase": "Research", "hours": 2},
			{"phase": "Drafting", "hours": 4},
			{"phase": "Revision", "hours": 2},
		],
		"startDate": "2025-01-10",
		"reasoning": "Essays of this length usually take a full week of evenings.",
		"tips": ["a"],
	}
