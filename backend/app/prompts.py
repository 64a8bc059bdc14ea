from __future__ import annotations
from typing import Any, List, Optional, Sequence

from .history_stats import compute_ratio
from .schemas import AssignmentDraft, MultiplierResult


DESCRIPTION_PREVIEW_CHARS = 100


def _num(value: Optional[float]) -> str:
	# 5.0 -> "5", 7.333333333 -> "7.333333333"
	if value is None:
		return "N/A"
	value = float(value)
	if value.is_integer():
		return str(int(value))
	return repr(value)


def _preview(details: Optional[str]) -> str:
	text = details or ""
	if len(text) > DESCRIPTION_PREVIEW_CHARS:
		return text[:DESCRIPTION_PREVIEW_CHARS] + "..."
	return text


def _mean(values: Sequence[float]) -> Optional[float]:
	if not values:
		return None
	return sum(values) / len(values)


def _past_assignment_block(index: int, record: Any) -> str:
	high = record.estimated_hours_max if record.estimated_hours_max is not None else record.estimated_hours_min
	avg_estimated = (record.estimated_hours_min + high) / 2
	if record.page_count and record.page_count > 0:
		per_page = f"{record.actual_hours / record.page_count:.2f}"
	else:
		per_page = "N/A"
	return (
		f"\nPast Assignment {index}:\n"
		f"- Subject: {record.subject or 'N/A'}\n"
		f"- Description: {_preview(record.details)}\n"
		f"- Page/Question Count: {record.page_count or 'N/A'}\n"
		f"- Estimated: {_num(record.estimated_hours_min)}-{_num(high)} hours (avg: {avg_estimated:.1f})\n"
		f"- ACTUAL TIME SPENT: {_num(record.actual_hours)} hours\n"
		f"- Hours per page: {per_page}\n"
		f"- Ratio (Actual/Estimated): {compute_ratio(record):.2f}x\n"
	)


class _HistorySummary:
	def __init__(self, history: Sequence[Any]) -> None:
		actual = [r.actual_hours for r in history]
		self.count = len(history)
		self.avg_actual = _mean(actual)
		self.min_actual = min(actual)
		self.max_actual = max(actual)
		pages = [r.page_count for r in history if r.page_count is not None]
		self.avg_pages = _mean(pages)
		self.hours_per_page = self.avg_actual / self.avg_pages if self.avg_pages else None
		self.avg_ratio = _mean([compute_ratio(r) for r in history])


def _history_section(draft: AssignmentDraft, history: Sequence[Any], summary: _HistorySummary) -> str:
	type_upper = draft.assignment_type.upper()
	type_lower = draft.assignment_type.lower()
	new_pages = draft.page_count or "N/A"

	parts: List[str] = [f"\n\nUSER'S PAST {type_upper} ASSIGNMENTS - USE THIS DATA FOR CONSISTENT PREDICTIONS:\n"]
	for index, record in enumerate(history, start=1):
		parts.append(_past_assignment_block(index, record))

	summary_lines = [
		"\nSTATISTICAL SUMMARY:",
		f"- Number of completed {type_lower}s: {summary.count}",
		f"- Average actual time: {summary.avg_actual:.1f} hours",
		f"- Range: {summary.min_actual:.1f} - {summary.max_actual:.1f} hours",
	]
	if summary.avg_pages:
		summary_lines.append(f"- Average page count: {summary.avg_pages:.1f} pages")
	if summary.hours_per_page:
		summary_lines.append(f"- Average hours per page: {summary.hours_per_page:.2f} hours/page")
	summary_lines.append(f"- Average ratio (actual/estimated): {summary.avg_ratio:.2f}x")
	parts.append("\n".join(summary_lines) + "\n")

	if summary.hours_per_page:
		baseline_pages = draft.page_count or summary.avg_pages
		baseline = (
			f"  → Calculate: {new_pages} pages × {summary.hours_per_page:.2f} hours/page = "
			f"{baseline_pages * summary.hours_per_page:.1f} hours baseline"
		)
	else:
		baseline = "  → Use average actual time as baseline"
	avg_pages = f"{summary.avg_pages:.1f}" if summary.avg_pages else "N/A"
	range_text = f"{summary.min_actual:.1f} - {summary.max_actual:.1f} hours"

	parts.append(
		"\nCRITICAL PREDICTION METHOD (MUST FOLLOW FOR CONSISTENCY):\n"
		"1. PRIMARY: Use the statistical averages above as your baseline\n"
		f"   - If new assignment has {new_pages} pages and average is {avg_pages} pages:\n"
		f"   {baseline}\n"
		f"   - If no page count, use average actual time: {summary.avg_actual:.1f} hours as baseline\n"
		"\n"
		"2. ADJUST for differences:\n"
		"   - Compare new assignment description with past ones\n"
		"   - If more complex/detailed: add 10-20%\n"
		"   - If simpler: subtract 10-20%\n"
		"   - If similar complexity: keep baseline\n"
		"\n"
		"3. CONSISTENCY CHECK:\n"
		f"   - Your estimate should be within the range: {range_text} (unless significantly different in size/complexity)\n"
		"   - If your estimate is outside this range, explain why in your reasoning\n"
		"\n"
		"4. FINAL ESTIMATE:\n"
		"   - Start from the calculated baseline\n"
		"   - Apply adjustments for complexity differences\n"
		"   - Add 10-15% buffer for unexpected issues\n"
		"   - Ensure consistency with past assignments\n"
	)
	return "".join(parts)


def _accuracy_context(draft: AssignmentDraft, multiplier: MultiplierResult) -> str:
	type_lower = draft.assignment_type.lower()
	if multiplier.sample_size > 0:
		noun = type_lower if multiplier.sample_size == 1 else f"{type_lower}s"
		text = (
			f"User's Historical Pattern: Based on {multiplier.sample_size} completed {noun}, "
			f"this student takes {multiplier.type_multiplier:.2f}x longer than estimated. "
		)
		if multiplier.overall_multiplier != multiplier.type_multiplier:
			text += f"Overall, across all assignment types, they take {multiplier.overall_multiplier:.2f}x longer. "
		return text
	return (
		f"User's Historical Pattern: This student historically takes {multiplier.multiplier:.2f}x "
		"longer than their initial estimates. Factor this into your calculation."
	)


def _instructions(draft: AssignmentDraft, multiplier: MultiplierResult, summary: Optional[_HistorySummary]) -> str:
	if summary is not None:
		type_lower = draft.assignment_type.lower()
		return (
			"\n1. MANDATORY: Follow the \"CRITICAL PREDICTION METHOD\" above. Use the statistical averages and calculations provided.\n"
			f"2. CONSISTENCY IS KEY: Your estimate must be consistent with past assignments. If past {type_lower}s took "
			f"{summary.min_actual:.1f}-{summary.max_actual:.1f} hours, your estimate should be in that range unless the new assignment is significantly different.\n"
			"3. Use the calculated baseline from the statistical summary, then adjust only for meaningful differences.\n"
			"4. Consider all phases: research, planning, writing/coding, revision, breaks, distractions.\n"
			"5. Add 10-15% buffer for unexpected issues (not 20-30% since we're using actual data).\n"
			"6. Calculate when they should START (assuming 2-4 hours of productive work per day).\n"
			"7. Provide specific, actionable tips for this assignment type.\n"
			"8. In your reasoning, explain:\n"
			"   - Which statistical baseline you used (average time, hours per page calculation, etc.)\n"
			"   - How you adjusted for differences from past assignments\n"
			f"   - Why your estimate is consistent with past {type_lower}s\n"
		)
	return (
		"\n1. Be REALISTIC, not optimistic. Add 20-30% buffer time on top of base estimates.\n"
		"2. Consider all phases: research, planning, writing/coding, revision, breaks, distractions.\n"
		"3. Account for the assignment type complexity.\n"
		f"4. Factor in the user's accuracy multiplier ({multiplier.multiplier:.2f}x).\n"
		"5. Calculate when they should START (assuming 2-4 hours of productive work per day).\n"
		"6. Provide specific, actionable tips for this assignment type.\n"
	)


OUTPUT_CONTRACT = """Return your response as a JSON object with this EXACT structure:
{
  "totalHours": {
    "min": <minimum hours>,
    "max": <maximum hours>
  },
  "breakdown": [
    {
      "phase": "<phase name>",
      "hours": <hours for this phase>
    }
  ],
  "startDate": "<YYYY-MM-DD>",
  "reasoning": "<2-3 sentences explaining why you gave this estimate>",
  "tips": [
    "<tip 1>",
    "<tip 2>",
    "<tip 3>"
  ]
}

Only return the JSON, no other text."""


def build_estimate_prompt(draft: AssignmentDraft, multiplier: MultiplierResult, history: Sequence[Any]) -> str:
	"""Render the estimation request for one new assignment.

	``history`` must already be narrowed to completed records of the draft's
	type that carry both actual and estimated hours (see
	``history_stats.same_type_completed``).
	"""
	summary = _HistorySummary(history) if history else None
	history_section = _history_section(draft, history, summary) if summary is not None else ""
	due = draft.due_date.isoformat() if draft.due_date else "Not specified"
	return (
		"You are an academic time management advisor helping students get REALISTIC time estimates for their assignments. "
		"Students typically underestimate by 40-60%, so be honest and add buffer time.\n"
		"\n"
		"NEW ASSIGNMENT DETAILS:\n"
		f"- Type: {draft.assignment_type}\n"
		f"- Subject: {draft.subject}\n"
		f"- Description: {draft.details}\n"
		f"- Page/Question Count: {draft.page_count or 'Not specified'}\n"
		f"- Due Date: {due}\n"
		"\n"
		f"{history_section}\n"
		"\n"
		f"{_accuracy_context(draft, multiplier)}\n"
		"\n"
		"CRITICAL INSTRUCTIONS:"
		f"{_instructions(draft, multiplier, summary)}\n"
		"\n"
		f"{OUTPUT_CONTRACT}"
	)
