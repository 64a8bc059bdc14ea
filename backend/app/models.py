from __future__ import annotations
from datetime import datetime
from sqlalchemy import Boolean, Column, Date, DateTime, Float, Integer, String, Text
from .db import Base


class AuthUser(Base):
	__tablename__ = "auth_users"
	# Primary key is username
	username = Column(String(128), primary_key=True, index=True)
	password_hash = Column(String(256), nullable=False)
	email = Column(String(256), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	# Token jti; deleting the row revokes the token
	session_id = Column(String(64), primary_key=True)
	username = Column(String(128), index=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Assignment(Base):
	__tablename__ = "assignments"
	id = Column(String(64), primary_key=True)
	user_id = Column(String(128), index=True, nullable=False)
	assignment_type = Column(String(64), nullable=False)
	subject = Column(String(256), nullable=False)
	details = Column(Text, nullable=False)
	page_count = Column(Integer, nullable=True)
	due_date = Column(Date, nullable=False)
	estimated_hours_min = Column(Float, nullable=False)
	estimated_hours_max = Column(Float, nullable=False)
	breakdown_json = Column(Text, nullable=True)  # JSON list of {phase, hours}
	start_date = Column(Date, nullable=True)
	reasoning = Column(Text, nullable=True)
	tips_json = Column(Text, nullable=True)  # JSON list of strings
	completed = Column(Boolean, default=False, nullable=False)
	actual_hours = Column(Float, nullable=True)
	completed_at = Column(DateTime, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
