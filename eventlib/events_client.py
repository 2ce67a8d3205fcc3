import json
from datetime import datetime
from datetime import timezone
from urllib.parse import quote

import requests

from eventlib import event_cache
from eventlib.event_models import CacheEntry
from eventlib.event_models import EventDecodeError
from eventlib.event_models import EventFeedError
from eventlib.event_models import GitHubEvent
from eventlib.event_models import events_from_payload


DEFAULT_API_URL = "https://api.github.com"
CACHE_KEY_PREFIX = "github-events-"


#============================================
class GitHubApiError(EventFeedError):
	"""
	Raised when GitHub answers with a non-success status.

	The string form is the upstream message field.
	"""

	def __init__(self, message: str, status_code: int, documentation_url: str = ""):
		super().__init__(message)
		self.status_code = status_code
		self.documentation_url = documentation_url


#============================================
def utc_now() -> datetime:
	"""
	Return UTC now as a timezone-aware datetime.
	"""
	return datetime.now(timezone.utc)


#============================================
def cache_key(username: str) -> str:
	return f"{CACHE_KEY_PREFIX}{username}"


#============================================
class GitHubEventsClient:
	"""
	Fetch a user's public events through an expiring cache.
	"""

	def __init__(
		self,
		cache: event_cache.ExpiringEventCache,
		token: str = "",
		api_url: str = DEFAULT_API_URL,
		timeout_seconds: float | None = None,
		session=None,
		log_fn=None,
		now_fn=utc_now,
	):
		self.cache = cache
		self.token = token
		self.api_url = api_url.rstrip("/")
		self.timeout_seconds = timeout_seconds
		self.session = session if session is not None else requests.Session()
		self.log_fn = log_fn
		self.now_fn = now_fn
		self._api_call_count = 0
		self._cache_hit_count = 0
		self._cache_miss_count = 0

	#============================================
	def log(self, message: str) -> None:
		"""
		Emit one log line when logger is configured.
		"""
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def close(self) -> None:
		"""
		Release pooled HTTP connections.
		"""
		self.session.close()

	#============================================
	def api_usage_snapshot(self) -> dict:
		"""
		Return API/caching counters for reporting.
		"""
		return {
			"api_call_count": self._api_call_count,
			"cache_hit_count": self._cache_hit_count,
			"cache_miss_count": self._cache_miss_count,
		}

	#============================================
	def events_url(self, username: str) -> str:
		"""
		Build the user events endpoint with the username escaped as one path segment.
		"""
		return f"{self.api_url}/users/{quote(username, safe='')}/events"

	#============================================
	def request_headers(self) -> dict:
		headers = {"Accept": "application/vnd.github+json"}
		if self.token:
			headers["Authorization"] = f"Bearer {self.token}"
		return headers

	#============================================
	def fetch_events(self, username: str) -> list[GitHubEvent]:
		"""
		Return events for one user, from cache when fresh, else from the API.

		A successful API fetch is cached for CACHE_TTL and the cache is saved.
		Failures leave the cache untouched.
		"""
		key = cache_key(username)
		entry = self.cache.get(key)
		if entry is None:
			self.log(f"Cache miss for {key}, fetching fresh data")
		else:
			self.log(f"Cache found for {key}, expires at {entry.expires_at.isoformat()}")
			if entry.is_fresh(self.now_fn()):
				self._cache_hit_count += 1
				self.log("Cache hit, returning cached data")
				return list(entry.data)
			self.log("Cache expired, fetching fresh data")
		self._cache_miss_count += 1

		events = self._fetch_events_live(username)
		expires_at = self.now_fn() + event_cache.CACHE_TTL
		self.cache.put(key, CacheEntry(data=tuple(events), expires_at=expires_at))
		self.log(f"Cache updated for key {key}, expires at {expires_at.isoformat()}")
		self.cache.save()
		self.log(f"Returning fresh data ({len(events)} events)")
		return events

	#============================================
	def _fetch_events_live(self, username: str) -> list[GitHubEvent]:
		"""
		Run one GET against the events endpoint and decode the body.
		"""
		url = self.events_url(username)
		self._api_call_count += 1
		response = self.session.get(
			url,
			headers=self.request_headers(),
			timeout=self.timeout_seconds,
		)
		if response.status_code != 200:
			raise self._error_from_response(response)
		try:
			payload = json.loads(response.text)
		except ValueError as error:
			raise EventDecodeError(f"Invalid events payload from {url}: {error}") from error
		return events_from_payload(payload)

	#============================================
	def _error_from_response(self, response) -> GitHubApiError:
		"""
		Decode a GitHub error body into GitHubApiError.
		"""
		try:
			payload = json.loads(response.text)
		except ValueError as error:
			raise EventDecodeError(
				f"Invalid error payload (HTTP {response.status_code}): {error}"
			) from error
		if not isinstance(payload, dict):
			raise EventDecodeError(f"Invalid error payload (HTTP {response.status_code})")
		message = payload.get("message")
		if not isinstance(message, str):
			raise EventDecodeError(
				f"Error payload without message field (HTTP {response.status_code})"
			)
		return GitHubApiError(
			message,
			status_code=response.status_code,
			documentation_url=str(payload.get("documentation_url") or ""),
		)
