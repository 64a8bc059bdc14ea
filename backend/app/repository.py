from __future__ import annotations
import json
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import AuthError, NotFoundError, PersistenceError
from .models import Assignment
from .schemas import AssignmentRecord

logger = logging.getLogger(__name__)

# Columns a caller may set after creation
_UPDATABLE = {"actual_hours", "completed", "completed_at"}


def _load_list(raw: Optional[str]) -> List[Any]:
	if not raw:
		return []
	try:
		value = json.loads(raw)
	except ValueError:
		logger.warning("Ignoring unreadable JSON column value: %r", raw[:80])
		return []
	return value if isinstance(value, list) else []


def to_record(row: Assignment) -> AssignmentRecord:
	return AssignmentRecord(
		id=row.id,
		user_id=row.user_id,
		assignment_type=row.assignment_type,
		subject=row.subject,
		details=row.details,
		page_count=row.page_count,
		due_date=row.due_date,
		estimated_hours_min=row.estimated_hours_min,
		estimated_hours_max=row.estimated_hours_max,
		breakdown=_load_list(row.breakdown_json),
		start_date=row.start_date,
		reasoning=row.reasoning or "",
		tips=_load_list(row.tips_json),
		completed=bool(row.completed),
		actual_hours=row.actual_hours,
		completed_at=row.completed_at,
		created_at=row.created_at,
	)


def _require_owner(owner_id: Optional[str]) -> str:
	if not owner_id:
		raise AuthError("User not authenticated")
	return owner_id


class AssignmentRepository:
	"""Assignment rows, always scoped to one owner."""

	def __init__(self, db: Session) -> None:
		self.db = db

	def list_by_owner(self, owner_id: Optional[str]) -> List[AssignmentRecord]:
		owner_id = _require_owner(owner_id)
		try:
			rows = (
				self.db.query(Assignment)
				.filter(Assignment.user_id == owner_id)
				.order_by(Assignment.created_at.desc())
				.all()
			)
		except SQLAlchemyError as err:
			logger.error("Error fetching assignments for %s: %s", owner_id, err)
			raise PersistenceError("Failed to load assignments") from err
		return [to_record(row) for row in rows]

	def get(self, record_id: str, owner_id: Optional[str]) -> AssignmentRecord:
		return to_record(self._owned_row(record_id, _require_owner(owner_id)))

	def insert(self, owner_id: Optional[str], fields: Dict[str, Any]) -> AssignmentRecord:
		owner_id = _require_owner(owner_id)
		values = dict(fields)
		breakdown = values.pop("breakdown", None) or []
		tips = values.pop("tips", None) or []
		try:
			row = Assignment(
				id=uuid.uuid4().hex,
				user_id=owner_id,
				breakdown_json=json.dumps(breakdown),
				tips_json=json.dumps(tips),
				**values,
			)
			self.db.add(row)
			self.db.commit()
			self.db.refresh(row)
		except (SQLAlchemyError, TypeError) as err:
			self.db.rollback()
			logger.error("Error inserting assignment for %s: %s", owner_id, err)
			raise PersistenceError(f"Failed to save assignment: {err}") from err
		logger.info("Assignment saved successfully with ID: %s", row.id)
		return to_record(row)

	def update(self, record_id: str, owner_id: Optional[str], changes: Dict[str, Any]) -> AssignmentRecord:
		owner_id = _require_owner(owner_id)
		unknown = set(changes) - _UPDATABLE
		if unknown:
			raise PersistenceError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
		row = self._owned_row(record_id, owner_id)
		try:
			for key, value in changes.items():
				setattr(row, key, value)
			self.db.add(row)
			self.db.commit()
			self.db.refresh(row)
		except SQLAlchemyError as err:
			self.db.rollback()
			logger.error("Error updating assignment %s: %s", record_id, err)
			raise PersistenceError(f"Failed to update assignment: {err}") from err
		return to_record(row)

	def _owned_row(self, record_id: str, owner_id: str) -> Assignment:
		if not record_id:
			raise NotFoundError("Assignment ID is required")
		try:
			row = (
				self.db.query(Assignment)
				.filter(Assignment.id == record_id, Assignment.user_id == owner_id)
				.first()
			)
		except SQLAlchemyError as err:
			logger.error("Error checking assignment existence: %s", err)
			raise PersistenceError("Failed to look up assignment") from err
		if row is None:
			raise NotFoundError(
				f"Assignment with ID {record_id} not found or you don't have permission to update it."
			)
		return row
