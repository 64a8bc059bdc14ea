from __future__ import annotations
import logging
from typing import AsyncIterator, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ..db import SessionLocal, get_db
from ..errors import PlannerError
from ..gemini_client import GeminiClient
from ..history_cache import HistoryCache
from ..history_stats import adjustment_note, compute_type_specific_multiplier
from ..repository import AssignmentRepository
from ..schemas import (
	ASSIGNMENT_TYPES,
	AssignmentDraft,
	AssignmentRecord,
	EstimateOutcome,
	LogHoursRequest,
	MultiplierPreview,
)
from ..workflow import EstimationWorkflow
from .auth import User, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assignments", tags=["assignments"])


def load_history(owner_id: str) -> List[AssignmentRecord]:
	with SessionLocal() as db:
		return AssignmentRepository(db).list_by_owner(owner_id)


def get_history_cache(request: Request) -> HistoryCache:
	cache = getattr(request.app.state, "history_cache", None)
	if cache is None:
		cache = HistoryCache(load_history)
		request.app.state.history_cache = cache
	return cache


async def get_gemini_client() -> AsyncIterator[Optional[GeminiClient]]:
	client: Optional[GeminiClient] = None
	try:
		client = GeminiClient()
	except ValueError as err:
		logger.warning("Estimation disabled: %s", err)
	try:
		yield client
	finally:
		if client is not None:
			await client.aclose()


def get_workflow(
	db: Session = Depends(get_db),
	client: Optional[GeminiClient] = Depends(get_gemini_client),
	cache: HistoryCache = Depends(get_history_cache),
) -> EstimationWorkflow:
	return EstimationWorkflow(AssignmentRepository(db), client, history_cache=cache)


def _http_error(err: PlannerError) -> HTTPException:
	return HTTPException(status_code=err.status_code, detail=err.message)


@router.get("/types")
def list_types() -> List[str]:
	return list(ASSIGNMENT_TYPES)


@router.post("/estimate", response_model=EstimateOutcome)
async def request_estimate(
	draft: AssignmentDraft,
	user: User = Depends(get_current_user),
	workflow: EstimationWorkflow = Depends(get_workflow),
):
	try:
		return await workflow.request_estimate(user.username, draft)
	except PlannerError as err:
		logger.info("Estimate request for %s failed: %s", user.username, err.message)
		raise _http_error(err)


@router.get("", response_model=List[AssignmentRecord])
def list_assignments(
	status: Literal["all", "pending", "completed"] = "all",
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	try:
		records = AssignmentRepository(db).list_by_owner(user.username)
	except PlannerError as err:
		raise _http_error(err)
	if status == "completed":
		return [r for r in records if r.completed]
	if status == "pending":
		return [r for r in records if not r.completed]
	return records


@router.post("/{record_id}/actual-hours", response_model=AssignmentRecord)
async def log_actual_hours(
	record_id: str,
	req: LogHoursRequest,
	user: User = Depends(get_current_user),
	workflow: EstimationWorkflow = Depends(get_workflow),
):
	try:
		return await workflow.log_actual_hours(user.username, record_id, req.actual_hours)
	except PlannerError as err:
		raise _http_error(err)


@router.get("/multiplier", response_model=MultiplierPreview)
def preview_multiplier(
	assignment_type: str = Query(...),
	user: User = Depends(get_current_user),
	cache: HistoryCache = Depends(get_history_cache),
):
	if assignment_type not in ASSIGNMENT_TYPES:
		raise HTTPException(status_code=400, detail="Please select an assignment type")
	try:
		history = cache.get(user.username)
	except PlannerError as err:
		raise _http_error(err)
	result = compute_type_specific_multiplier(history, assignment_type)
	return MultiplierPreview(
		assignment_type=assignment_type,
		result=result,
		note=adjustment_note(result, assignment_type),
	)
