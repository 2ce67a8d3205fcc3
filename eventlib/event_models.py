import re
from dataclasses import dataclass
from datetime import datetime
from datetime import timezone


FRACTION_RE = re.compile(r"(?<=\d{2}:\d{2}:\d{2})\.(\d+)")


#============================================
class EventFeedError(RuntimeError):
	"""
	Base error for event feed failures.
	"""


#============================================
class EventDecodeError(EventFeedError):
	"""
	Raised when an event or error payload has the wrong shape.
	"""


#============================================
def _six_digit_fraction(match: re.Match) -> str:
	# fromisoformat before 3.11 only takes 3 or 6 fractional digits
	return "." + match.group(1)[:6].ljust(6, "0")


#============================================
def parse_iso(ts: str) -> datetime:
	"""
	Parse an ISO timestamp string into a timezone-aware UTC datetime.
	"""
	text = str(ts or "").strip()
	if not text:
		raise EventDecodeError("Empty timestamp")
	text = FRACTION_RE.sub(_six_digit_fraction, text.replace("Z", "+00:00"))
	try:
		parsed = datetime.fromisoformat(text)
	except ValueError as error:
		raise EventDecodeError(f"Invalid timestamp: {ts!r}") from error
	if parsed.tzinfo is None:
		parsed = parsed.replace(tzinfo=timezone.utc)
	return parsed.astimezone(timezone.utc)


#============================================
def to_utc_iso(value: datetime) -> str:
	"""
	Format a datetime as an ISO-8601 UTC string.
	"""
	if value.tzinfo is None:
		value = value.replace(tzinfo=timezone.utc)
	return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


#============================================
def _require_str(payload: dict, key: str, context: str) -> str:
	if not isinstance(payload, dict):
		raise EventDecodeError(f"Expected object for {context}, got {type(payload).__name__}")
	value = payload.get(key)
	if not isinstance(value, str):
		raise EventDecodeError(f"Missing string field {context}.{key}")
	return value


#============================================
@dataclass(frozen=True)
class GitHubEvent:
	"""
	One public activity record from a user's event feed.
	"""

	type: str
	actor_login: str
	repo_name: str
	repo_url: str
	created_at: datetime

	@classmethod
	def from_payload(cls, payload: dict) -> "GitHubEvent":
		"""
		Decode one event from the GitHub API object shape.
		"""
		if not isinstance(payload, dict):
			raise EventDecodeError(f"Expected event object, got {type(payload).__name__}")
		return cls(
			type=_require_str(payload, "type", "event"),
			actor_login=_require_str(payload.get("actor"), "login", "actor"),
			repo_name=_require_str(payload.get("repo"), "name", "repo"),
			repo_url=_require_str(payload.get("repo"), "url", "repo"),
			created_at=parse_iso(_require_str(payload, "created_at", "event")),
		)

	def to_payload(self) -> dict:
		"""
		Encode back to the GitHub API object shape.
		"""
		return {
			"type": self.type,
			"actor": {"login": self.actor_login},
			"repo": {"name": self.repo_name, "url": self.repo_url},
			"created_at": to_utc_iso(self.created_at),
		}


#============================================
def events_from_payload(payload) -> list[GitHubEvent]:
	"""
	Decode a JSON array of event objects.
	"""
	if not isinstance(payload, list):
		raise EventDecodeError(f"Expected event list, got {type(payload).__name__}")
	return [GitHubEvent.from_payload(item) for item in payload]


#============================================
@dataclass(frozen=True)
class CacheEntry:
	"""
	Cached events for one key plus their absolute expiration.
	"""

	data: tuple[GitHubEvent, ...]
	expires_at: datetime

	def is_fresh(self, now: datetime) -> bool:
		return now < self.expires_at

	@classmethod
	def from_payload(cls, payload: dict) -> "CacheEntry":
		if not isinstance(payload, dict):
			raise EventDecodeError(f"Expected cache entry object, got {type(payload).__name__}")
		if "Data" not in payload or "ExpiresAt" not in payload:
			raise EventDecodeError("Cache entry must contain Data and ExpiresAt")
		data = payload["Data"]
		# encoders that write a nil slice produce null
		if data is None:
			data = []
		return cls(
			data=tuple(events_from_payload(data)),
			expires_at=parse_iso(payload["ExpiresAt"]),
		)

	def to_payload(self) -> dict:
		return {
			"Data": [event.to_payload() for event in self.data],
			"ExpiresAt": to_utc_iso(self.expires_at),
		}
