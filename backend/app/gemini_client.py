from __future__ import annotations
import enum
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .errors import EstimationServiceError, NoJsonFoundError, QuotaExceededError
from .settings import ModelConfig, settings

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```")
_BARE_JSON = re.compile(r"\{[\s\S]*\}")

_UNAVAILABLE_MARKERS = ("not found", "not supported", "not available")

QUOTA_MESSAGE = "API quota exceeded. Please check your Google Cloud billing plan or wait for the quota to reset."
GUIDANCE = (
	"All model configurations failed. "
	"Please check: 1) Your API key is valid, 2) You have access to Gemini models in your Google Cloud account, "
	"3) Your billing/quota settings allow API usage. "
	"You may need to enable billing or check your Google Cloud Console for available models."
)


class ErrorAction(enum.Enum):
	NEXT = "next"  # model/version unknown, or a failure specific to this rung
	FAIL = "fail"  # account-wide, trying other models will not help


def is_model_unavailable(message: str) -> bool:
	lowered = (message or "").lower()
	return any(marker in lowered for marker in _UNAVAILABLE_MARKERS)


def classify_error(message: str, status: Optional[str] = None) -> ErrorAction:
	# An unknown model wins over a quota mention in the same message
	if is_model_unavailable(message):
		return ErrorAction.NEXT
	lowered = (message or "").lower()
	if "quota" in lowered or status == "RESOURCE_EXHAUSTED":
		return ErrorAction.FAIL
	return ErrorAction.NEXT


def extract_json_text(text: str) -> str:
	"""Pull the JSON object out of a reply: fenced block first, then first '{' to last '}'."""
	fenced = _FENCED_JSON.search(text or "")
	if fenced:
		return fenced.group(1)
	bare = _BARE_JSON.search(text or "")
	if bare:
		return bare.group(0)
	raise NoJsonFoundError("No valid JSON found in response")


def parse_json_object(text: str) -> Dict[str, Any]:
	candidate = extract_json_text(text)
	try:
		data = json.loads(candidate)
	except json.JSONDecodeError as err:
		raise EstimationServiceError(f"Gemini returned malformed JSON: {err}") from err
	if not isinstance(data, dict):
		raise EstimationServiceError("Gemini returned JSON that is not an object")
	return data


class _AttemptFailed(Exception):
	def __init__(self, message: str, status: Optional[str] = None) -> None:
		super().__init__(message)
		self.message = message
		self.status = status


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		configs: Optional[Sequence[ModelConfig]] = None,
		base_url: Optional[str] = None,
		http_client: Optional[httpx.AsyncClient] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.configs: List[ModelConfig] = list(configs if configs is not None else settings.gemini_model_configs)
		if not self.configs:
			raise ValueError("At least one Gemini model configuration is required")
		self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
		self._client = http_client or httpx.AsyncClient(timeout=settings.gemini_timeout_seconds)

	def endpoint(self, config: ModelConfig) -> str:
		return f"{self.base_url}/{config.version}/models/{config.model}:generateContent"

	async def generate_json(self, prompt: str) -> Dict[str, Any]:
		"""Walk the model ladder until one configuration yields a JSON object.

		Quota errors stop the walk immediately; every other failure moves on
		to the next configuration. Each configuration is tried once.
		"""
		payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
		last_error: Optional[str] = None
		for index, config in enumerate(self.configs):
			try:
				text = await self._post_payload(config, payload)
				data = parse_json_object(text)
			except _AttemptFailed as err:
				if is_model_unavailable(err.message):
					logger.info("Model %s not available with %s, trying next...", config.model, config.version)
					last_error = f"Model {config.model} not available with {config.version}"
				elif classify_error(err.message, err.status) is ErrorAction.FAIL:
					logger.warning("Gemini quota exhausted on %s/%s: %s", config.model, config.version, err.message)
					raise QuotaExceededError(QUOTA_MESSAGE, details={"provider_message": err.message}) from err
				else:
					logger.warning("Gemini call failed on %s/%s: %s", config.model, config.version, err.message)
					last_error = err.message
				continue
			except EstimationServiceError as err:
				logger.warning("Unusable Gemini reply from %s/%s: %s", config.model, config.version, err.message)
				last_error = err.message
				continue
			logger.debug("Gemini estimate produced by %s/%s (attempt %d)", config.model, config.version, index + 1)
			return data
		final = last_error or "Failed to connect to Gemini API"
		raise EstimationServiceError(f"{final.rstrip('.')}. {GUIDANCE}", details={"last_error": final})

	async def _post_payload(self, config: ModelConfig, payload: Dict[str, Any]) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {"Content-Type": "application/json"}
		if config.key_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		try:
			r = await self._client.post(self.endpoint(config), params=params, headers=headers, json=payload)
		except httpx.RequestError as net_err:
			raise _AttemptFailed(f"Network error contacting Gemini: {net_err}") from net_err
		if r.is_error:
			message, status = _error_details(r)
			raise _AttemptFailed(message, status)
		try:
			data = r.json()
			text = data["candidates"][0]["content"]["parts"][0]["text"]
		except (ValueError, KeyError, IndexError, TypeError):
			text = None
		if not text:
			raise _AttemptFailed("No response from Gemini API")
		return text

	async def aclose(self) -> None:
		await self._client.aclose()


def _error_details(r: httpx.Response) -> tuple[str, Optional[str]]:
	try:
		body = r.json()
	except ValueError:
		body = {}
	error = body.get("error") if isinstance(body, dict) else None
	if isinstance(error, dict):
		message = error.get("message") or f"API error: {r.status_code}"
		return str(message), error.get("status")
	return f"API error: {r.status_code}", None
