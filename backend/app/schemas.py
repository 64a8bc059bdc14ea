from __future__ import annotations
import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


ASSIGNMENT_TYPES: List[str] = [
	"Essay",
	"Research Paper",
	"Problem Set",
	"Coding Project",
	"Presentation",
	"Lab Report",
	"Reading Assignment",
	"Study Guide",
	"Creative Project",
	"Group Project",
]


def _as_hours(value: Any) -> Optional[float]:
	# Model replies sometimes say "2-3" or leave hours out; keep the phase anyway
	if value is None or isinstance(value, bool):
		return None
	if isinstance(value, str):
		try:
			value = float(value.strip())
		except ValueError:
			return None
	if isinstance(value, (int, float)) and math.isfinite(value):
		return float(value)
	return None


class BreakdownItem(BaseModel):
	phase: str = ""
	hours: Optional[float] = None

	@field_validator("phase", mode="before")
	@classmethod
	def _phase_text(cls, value: Any) -> Any:
		return "" if value is None else str(value)

	@field_validator("hours", mode="before")
	@classmethod
	def _lenient_hours(cls, value: Any) -> Optional[float]:
		return _as_hours(value)


class AssignmentDraft(BaseModel):
	# Loosely typed on purpose; the workflow reports field-level problems itself
	assignment_type: str = ""
	subject: str = ""
	details: str = ""
	page_count: Optional[int] = None
	due_date: Optional[date] = None


class AssignmentRecord(BaseModel):
	id: str
	user_id: str
	assignment_type: str
	subject: str
	details: str
	page_count: Optional[int] = None
	due_date: date
	estimated_hours_min: float
	estimated_hours_max: float
	breakdown: List[BreakdownItem] = Field(default_factory=list)
	start_date: Optional[date] = None
	reasoning: str = ""
	tips: List[str] = Field(default_factory=list)
	completed: bool = False
	actual_hours: Optional[float] = None
	completed_at: Optional[datetime] = None
	created_at: Optional[datetime] = None


class TotalHours(BaseModel):
	min: float = Field(ge=0)
	max: float = Field(ge=0)

	@model_validator(mode="after")
	def _ordered(self) -> "TotalHours":
		if self.min > self.max:
			raise ValueError("totalHours.min must not exceed totalHours.max")
		return self


class Estimate(BaseModel):
	"""Validated model reply. Field names follow the JSON contract in the prompt.

	Only totalHours and startDate can make a reply invalid. breakdown,
	reasoning and tips are taken as far as they are usable: breakdown
	entries that are not objects and tips that are neither text nor numbers are dropped.
	"""

	model_config = ConfigDict(extra="ignore")

	totalHours: TotalHours
	breakdown: List[BreakdownItem] = Field(default_factory=list)
	startDate: date
	reasoning: str = ""
	tips: List[str] = Field(default_factory=list)

	@field_validator("breakdown", mode="before")
	@classmethod
	def _usable_breakdown(cls, value: Any) -> List[Any]:
		if not isinstance(value, list):
			return []
		return [item for item in value if isinstance(item, dict)]

	@field_validator("tips", mode="before")
	@classmethod
	def _usable_tips(cls, value: Any) -> List[str]:
		if isinstance(value, str):
			value = [value]
		if not isinstance(value, list):
			return []
		tips: List[str] = []
		for tip in value:
			if isinstance(tip, str):
				tips.append(tip)
			elif isinstance(tip, (int, float)) and not isinstance(tip, bool):
				tips.append(str(tip))
		return tips

	@field_validator("reasoning", mode="before")
	@classmethod
	def _reasoning_text(cls, value: Any) -> str:
		if value is None:
			return ""
		return value if isinstance(value, str) else str(value)


class MultiplierResult(BaseModel):
	multiplier: float = 1.0
	sample_size: int = 0
	type_multiplier: float = 1.0
	overall_multiplier: float = 1.0


class EstimateOutcome(BaseModel):
	estimate: Estimate
	assignment: AssignmentRecord
	multiplier: MultiplierResult
	days_until_start: Optional[int] = None


class LogHoursRequest(BaseModel):
	actual_hours: float


class MultiplierPreview(BaseModel):
	assignment_type: str
	result: MultiplierResult
	note: Optional[str] = None


def estimate_fields(estimate: Estimate) -> Dict[str, Any]:
	"""Repository columns populated from an accepted estimate."""
	return {
		"estimated_hours_min": estimate.totalHours.min,
		"estimated_hours_max": estimate.totalHours.max,
		"breakdown": [item.model_dump() for item in estimate.breakdown],
		"start_date": estimate.startDate,
		"reasoning": estimate.reasoning,
		"tips": list(estimate.tips),
	}
