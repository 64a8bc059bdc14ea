"""Accuracy multipliers derived from a user's completed assignments.

A ratio above 1.0 means the student took longer than estimated. Every
function here is pure: results depend only on the records passed in.
"""
from __future__ import annotations
import math
from typing import Any, Iterable, List, Optional, Sequence

from .schemas import MultiplierResult


MIN_MULTIPLIER = 0.5
MAX_MULTIPLIER = 2.0
# Same-type samples needed before the type multiplier is trusted on its own
FULL_TRUST_SAMPLES = 3
TYPE_WEIGHT = 0.7
OVERALL_WEIGHT = 0.3


def _clamp(value: float) -> float:
	return max(MIN_MULTIPLIER, min(MAX_MULTIPLIER, value))


def _finite_or_one(value: Optional[float]) -> float:
	if value is None or math.isnan(value):
		return 1.0
	return value


def is_eligible(record: Any) -> bool:
	return bool(
		record is not None
		and record.completed is True
		and record.actual_hours
		and record.estimated_hours_min is not None
	)


def compute_ratio(record: Any) -> float:
	"""actual_hours over the midpoint of the estimated range.

	A zero midpoint gives ``inf``, which the clamp later caps at 2.0.
	"""
	if not is_eligible(record):
		raise ValueError("ratio is only defined for completed records with actual and estimated hours")
	high = record.estimated_hours_max if record.estimated_hours_max is not None else record.estimated_hours_min
	avg_estimated = (record.estimated_hours_min + high) / 2
	if avg_estimated <= 0:
		return math.inf
	return record.actual_hours / avg_estimated


def eligible_records(records: Optional[Iterable[Any]]) -> List[Any]:
	return [r for r in (records or []) if is_eligible(r)]


def compute_multiplier(records: Optional[Iterable[Any]]) -> float:
	eligible = eligible_records(records)
	if not eligible:
		return 1.0
	ratios = [compute_ratio(r) for r in eligible]
	return _clamp(sum(ratios) / len(ratios))


def same_type_completed(records: Optional[Iterable[Any]], target_type: str) -> List[Any]:
	return [r for r in eligible_records(records) if r.assignment_type == target_type]


def compute_type_specific_multiplier(records: Optional[Sequence[Any]], target_type: str) -> MultiplierResult:
	eligible = eligible_records(records)
	if not eligible:
		return MultiplierResult(multiplier=1.0, sample_size=0, type_multiplier=1.0, overall_multiplier=1.0)

	overall = compute_multiplier(eligible)
	same_type = [r for r in eligible if r.assignment_type == target_type]
	sample_size = len(same_type)

	if sample_size == 0:
		type_multiplier = overall
		multiplier = overall
	elif sample_size < FULL_TRUST_SAMPLES:
		type_multiplier = compute_multiplier(same_type)
		multiplier = type_multiplier * TYPE_WEIGHT + overall * OVERALL_WEIGHT
	else:
		type_multiplier = compute_multiplier(same_type)
		multiplier = type_multiplier

	return MultiplierResult(
		multiplier=_finite_or_one(multiplier),
		sample_size=sample_size,
		type_multiplier=_finite_or_one(type_multiplier),
		overall_multiplier=_finite_or_one(overall),
	)


def _plural(word: str, count: int) -> str:
	return word if count == 1 else f"{word}s"


def adjustment_note(result: MultiplierResult, target_type: str) -> Optional[str]:
	if result.sample_size > 0:
		noun = _plural(target_type.lower(), result.sample_size)
		return (
			f"Based on {result.sample_size} past {noun}, "
			f"we've adjusted estimates by {result.multiplier:.2f}x to match your working style."
		)
	if result.overall_multiplier != 1.0:
		return f"Based on your past assignments, we've adjusted estimates by {result.overall_multiplier:.2f}x to match your working style."
	return None
