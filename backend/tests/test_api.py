"""HTTP surface tests using FastAPI's TestClient."""

import uuid
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from app.db import SessionLocal
from app.main import app
from app.models import AuthUser
from app.routers.assignments import get_gemini_client
from app.routers.auth import User, get_current_user

from conftest import FakeEstimateClient


@pytest.fixture
def username():
	return f"student-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def fake_client(estimate_reply):
	return FakeEstimateClient(reply=estimate_reply)


@pytest.fixture
def client(username, fake_client):
	async def _fake_gemini():
		yield fake_client

	app.dependency_overrides[get_current_user] = lambda: User(username=username)
	app.dependency_overrides[get_gemini_client] = _fake_gemini
	with TestClient(app) as test_client:
		yield test_client
	app.dependency_overrides.clear()


def _draft(**overrides):
	body = {
		"assignment_type": "Essay",
		"subject": "X",
		"details": "Y",
		"page_count": 4,
		"due_date": (date.today() + timedelta(days=14)).isoformat(),
	}
	body.update(overrides)
	return body


def test_info_and_health(client):
	assert client.get("/info").json()["status"] == "ok"
	assert client.get("/health").json() == {"status": "ok", "database": "ok"}


def test_types(client):
	types = client.get("/assignments/types").json()
	assert "Essay" in types
	assert len(types) == 10


def test_estimate_then_log_hours(client, estimate_reply):
	r = client.post("/assignments/estimate", json=_draft())
	assert r.status_code == 200, r.text
	body = r.json()
	assert body["estimate"] == estimate_reply
	assignment_id = body["assignment"]["id"]
	assert body["assignment"]["completed"] is False
	assert body["multiplier"]["sample_size"] == 0

	pending = client.get("/assignments", params={"status": "pending"}).json()
	assert [a["id"] for a in pending] == [assignment_id]
	assert client.get("/assignments", params={"status": "completed"}).json() == []

	r = client.post(f"/assignments/{assignment_id}/actual-hours", json={"actual_hours": 9.75})
	assert r.status_code == 200, r.text
	assert r.json()["completed"] is True
	completed = client.get("/assignments", params={"status": "completed"}).json()
	assert [a["actual_hours"] for a in completed] == [9.75]


def test_past_due_date_is_rejected(client, fake_client):
	r = client.post("/assignments/estimate", json=_draft(due_date=(date.today() - timedelta(days=1)).isoformat()))
	assert r.status_code == 400
	assert r.json()["detail"] == "Due date cannot be in the past"
	assert fake_client.prompts == []


def test_invalid_reply_is_bad_gateway(client, fake_client):
	fake_client.reply = {"startDate": "2030-01-01"}
	r = client.post("/assignments/estimate", json=_draft())
	assert r.status_code == 502
	assert client.get("/assignments").json() == []


def test_log_hours_errors(client):
	assert client.post("/assignments/nope/actual-hours", json={"actual_hours": 2}).status_code == 404
	r = client.post("/assignments/estimate", json=_draft())
	assignment_id = r.json()["assignment"]["id"]
	r = client.post(f"/assignments/{assignment_id}/actual-hours", json={"actual_hours": 0})
	assert r.status_code == 400


def test_multiplier_preview(client):
	r = client.get("/assignments/multiplier", params={"assignment_type": "Lab Report"})
	assert r.status_code == 200
	body = r.json()
	assert body["result"] == {"multiplier": 1.0, "sample_size": 0, "type_multiplier": 1.0, "overall_multiplier": 1.0}
	assert body["note"] is None
	assert client.get("/assignments/multiplier", params={"assignment_type": "Poem"}).status_code == 400


def test_requires_authentication():
	with TestClient(app) as test_client:
		assert test_client.get("/assignments").status_code == 401


def test_register_login_me(username):
	with TestClient(app) as test_client:
		r = test_client.post("/auth/register", json={"username": username, "password": "s3cret-pass", "email": "s@example.com"})
		assert r.status_code == 201
		assert test_client.post("/auth/register", json={"username": username, "password": "x", "email": "s@example.com"}).status_code == 409

		r = test_client.post("/auth/token", data={"username": username, "password": "wrong"})
		assert r.status_code == 401
		r = test_client.post("/auth/token", data={"username": username, "password": "s3cret-pass"})
		assert r.status_code == 200
		token = r.json()["access_token"]

		r = test_client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
		assert r.json() == {"username": username}


def test_register_stores_username_and_email(username):
	with TestClient(app) as test_client:
		r = test_client.post(
			"/auth/register",
			json={"username": username, "password": "s3cret-pass", "email": "  s@example.com "},
		)
		assert r.status_code == 201
		r = test_client.post("/auth/register", json={"username": f"{username}-2", "password": "s3cret-pass"})
		assert r.status_code == 422

	assert set(AuthUser.__table__.columns.keys()) == {"username", "password_hash", "email", "created_at", "updated_at"}
	db = SessionLocal()
	try:
		row = db.get(AuthUser, username)
		assert row.email == "s@example.com"
	finally:
		db.close()
