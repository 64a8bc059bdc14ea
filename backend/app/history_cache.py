from __future__ import annotations
import logging
from typing import Callable, Dict, List

from .errors import NonCriticalRefreshError
from .schemas import AssignmentRecord

logger = logging.getLogger(__name__)

HistoryLoader = Callable[[str], List[AssignmentRecord]]


class HistoryCache:
	"""Last known assignment list per owner.

	Only previews read from here; estimation always loads history fresh.
	"""

	def __init__(self, loader: HistoryLoader) -> None:
		self._loader = loader
		self._entries: Dict[str, List[AssignmentRecord]] = {}

	def get(self, owner_id: str) -> List[AssignmentRecord]:
		if owner_id not in self._entries:
			self._entries[owner_id] = self._loader(owner_id)
		return list(self._entries[owner_id])

	async def refresh(self, owner_id: str) -> None:
		try:
			records = self._loader(owner_id)
		except Exception as err:
			raise NonCriticalRefreshError(f"Error reloading assignments: {err}") from err
		self._entries[owner_id] = records
		logger.debug("History cache refreshed for %s (%d records)", owner_id, len(records))
