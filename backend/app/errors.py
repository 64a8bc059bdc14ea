from __future__ import annotations
from typing import Any, Dict, Optional


class PlannerError(Exception):
	"""Base class for failures that cross the workflow boundary.

	The message is always human readable; provider detail, when kept, goes
	in ``details`` and is meant for logs.
	"""

	status_code: int = 500

	def __init__(self, message: str, *, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
		self.message = message
		self.field = field
		self.details = details or {}
		super().__init__(self.message)

	def to_dict(self) -> Dict[str, Any]:
		data: Dict[str, Any] = {"error": self.__class__.__name__, "message": self.message}
		if self.field:
			data["field"] = self.field
		return data


class ValidationError(PlannerError):
	status_code = 400


class AuthError(PlannerError):
	status_code = 401


class NotFoundError(PlannerError):
	status_code = 404


class EstimationServiceError(PlannerError):
	status_code = 502


class QuotaExceededError(EstimationServiceError):
	status_code = 429


class NoJsonFoundError(EstimationServiceError):
	pass


class PersistenceError(PlannerError):
	status_code = 500


class NonCriticalRefreshError(PlannerError):
	pass
