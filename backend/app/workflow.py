from __future__ import annotations
import asyncio
import logging
import math
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional, Protocol, Set

from pydantic import ValidationError as PydanticValidationError

from .errors import EstimationServiceError, NonCriticalRefreshError, PlannerError, ValidationError
from .history_cache import HistoryCache
from .history_stats import compute_type_specific_multiplier, same_type_completed
from .prompts import build_estimate_prompt
from .repository import AssignmentRepository
from .schemas import (
	ASSIGNMENT_TYPES,
	AssignmentDraft,
	AssignmentRecord,
	Estimate,
	EstimateOutcome,
	estimate_fields,
)

logger = logging.getLogger(__name__)


class EstimateClient(Protocol):
	async def generate_json(self, prompt: str) -> Dict[str, Any]: ...


def validate_draft(draft: AssignmentDraft, today: date) -> AssignmentDraft:
	"""Return a trimmed copy of ``draft`` or raise ``ValidationError`` naming the field."""
	if draft.assignment_type not in ASSIGNMENT_TYPES:
		raise ValidationError("Please select an assignment type", field="assignment_type")
	subject = (draft.subject or "").strip()
	if not subject:
		raise ValidationError("Please enter a subject", field="subject")
	details = (draft.details or "").strip()
	if not details:
		raise ValidationError("Please provide assignment details", field="details")
	if draft.page_count is not None and draft.page_count <= 0:
		raise ValidationError("Page/question count must be a positive number", field="page_count")
	if draft.due_date is None:
		raise ValidationError("Please select a due date", field="due_date")
	if draft.due_date < today:
		raise ValidationError("Due date cannot be in the past", field="due_date")
	return draft.model_copy(update={"subject": subject, "details": details})


def validate_estimate(data: Optional[Dict[str, Any]]) -> Estimate:
	# breakdown, reasoning and tips may be missing; totalHours and startDate may not
	if not isinstance(data, dict) or not data.get("totalHours") or not data.get("startDate"):
		raise EstimationServiceError("Invalid response from AI. Missing required fields. Please try again.")
	try:
		return Estimate.model_validate(data)
	except PydanticValidationError as err:
		logger.warning("Rejected estimate payload: %s", err)
		raise EstimationServiceError("Invalid response from AI. Please try again.") from err


class EstimationWorkflow:
	def __init__(
		self,
		repository: AssignmentRepository,
		client: Optional[EstimateClient] = None,
		*,
		history_cache: Optional[HistoryCache] = None,
		today: Callable[[], date] = date.today,
	) -> None:
		self.repository = repository
		self.client = client
		self.history_cache = history_cache
		self._today = today
		# Strong references so pending refreshes are not garbage collected
		self.pending_refreshes: Set[asyncio.Task] = set()

	async def request_estimate(self, owner_id: Optional[str], draft: AssignmentDraft) -> EstimateOutcome:
		today = self._today()
		draft = validate_draft(draft, today)
		if self.client is None:
			raise EstimationServiceError("Gemini API key not configured")

		# Always fresh: a completion logged moments ago must count
		history = self.repository.list_by_owner(owner_id)
		multiplier = compute_type_specific_multiplier(history, draft.assignment_type)
		prompt = build_estimate_prompt(draft, multiplier, same_type_completed(history, draft.assignment_type))

		try:
			payload = await self.client.generate_json(prompt)
		except PlannerError:
			raise
		except Exception as err:
			logger.exception("Unexpected failure calling the estimation service")
			raise EstimationServiceError("Failed to get time estimate. Please try again.") from err
		estimate = validate_estimate(payload)

		fields = {
			"assignment_type": draft.assignment_type,
			"subject": draft.subject,
			"details": draft.details,
			"page_count": draft.page_count,
			"due_date": draft.due_date,
			"completed": False,
			**estimate_fields(estimate),
		}
		record = self.repository.insert(owner_id, fields)
		self._schedule_refresh(record.user_id)

		return EstimateOutcome(
			estimate=estimate,
			assignment=record,
			multiplier=multiplier,
			days_until_start=(estimate.startDate - today).days,
		)

	async def log_actual_hours(self, owner_id: Optional[str], record_id: str, hours: float) -> AssignmentRecord:
		if hours is None or not math.isfinite(hours) or hours <= 0:
			raise ValidationError("Please enter a valid number of hours (greater than 0)", field="actual_hours")
		current = self.repository.get(record_id, owner_id)
		if current.actual_hours is not None:
			raise ValidationError("Actual hours were already logged for this assignment", field="actual_hours")
		changes: Dict[str, Any] = {"actual_hours": hours, "completed": True}
		if current.completed_at is None:
			changes["completed_at"] = datetime.utcnow()
		record = self.repository.update(record_id, owner_id, changes)
		self._schedule_refresh(record.user_id)
		return record

	def _schedule_refresh(self, owner_id: str) -> None:
		if self.history_cache is None:
			return
		try:
			task = asyncio.get_running_loop().create_task(self.history_cache.refresh(owner_id))
		except RuntimeError:
			logger.warning("No running event loop; skipping history refresh for %s", owner_id)
			return
		self.pending_refreshes.add(task)
		task.add_done_callback(self._refresh_done)

	def _refresh_done(self, task: asyncio.Task) -> None:
		self.pending_refreshes.discard(task)
		if task.cancelled():
			return
		err = task.exception()
		if isinstance(err, NonCriticalRefreshError):
			logger.error("%s", err.message)
		elif err is not None:
			logger.error("Error reloading assignments: %s", err)
