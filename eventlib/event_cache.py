import json
import os
import threading
from datetime import timedelta

from eventlib.event_models import CacheEntry
from eventlib.event_models import EventDecodeError
from eventlib.event_models import EventFeedError


CACHE_TTL = timedelta(minutes=10)
DEFAULT_CACHE_FILE = "cache.json"


#============================================
class CacheFileError(EventFeedError):
	"""
	Raised when the cache file cannot be read, decoded, or written.
	"""


#============================================
class ExpiringEventCache:
	"""
	Lock-guarded map of cache key to CacheEntry, persisted as one JSON file.

	Freshness is judged by callers via CacheEntry.is_fresh. Expired entries
	are kept until overwritten, both in memory and on disk.
	"""

	def __init__(self, cache_file: str = DEFAULT_CACHE_FILE, log_fn=None):
		self.cache_file = cache_file
		self.log_fn = log_fn
		self._entries: dict[str, CacheEntry] = {}
		self._lock = threading.Lock()

	#============================================
	def log(self, message: str) -> None:
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def load(self) -> None:
		"""
		Replace in-memory entries with the persisted image.

		A missing file leaves the cache empty. A malformed file raises
		CacheFileError.
		"""
		with self._lock:
			if not os.path.isfile(self.cache_file):
				self.log("Cache file not found, starting fresh")
				return
			try:
				with open(self.cache_file, "r", encoding="utf-8") as handle:
					payload = json.load(handle)
			except OSError as error:
				raise CacheFileError(f"Error reading cache file {self.cache_file}: {error}") from error
			except ValueError as error:
				raise CacheFileError(f"Error parsing cache file {self.cache_file}: {error}") from error
			if not isinstance(payload, dict):
				raise CacheFileError(
					f"Error parsing cache file {self.cache_file}: top level must be an object"
				)
			entries = {}
			for key, item in payload.items():
				try:
					entries[key] = CacheEntry.from_payload(item)
				except EventDecodeError as error:
					raise CacheFileError(
						f"Error parsing cache file {self.cache_file}: entry {key!r}: {error}"
					) from error
			self._entries = entries
			self.log(f"Cache loaded successfully ({len(entries)} entries)")

	#============================================
	def save(self) -> None:
		"""
		Overwrite the cache file with every entry, fresh or stale.
		"""
		with self._lock:
			payload = {key: entry.to_payload() for key, entry in self._entries.items()}
			cache_dir = os.path.dirname(self.cache_file)
			try:
				if cache_dir:
					os.makedirs(cache_dir, exist_ok=True)
				with open(self.cache_file, "w", encoding="utf-8") as handle:
					json.dump(payload, handle, ensure_ascii=True, sort_keys=True, indent=2)
					handle.write("\n")
			except (OSError, TypeError, ValueError) as error:
				raise CacheFileError(f"Error saving cache file {self.cache_file}: {error}") from error
			self.log("Cache saved successfully")

	#============================================
	def get(self, key: str) -> CacheEntry | None:
		with self._lock:
			return self._entries.get(key)

	#============================================
	def put(self, key: str, entry: CacheEntry) -> None:
		with self._lock:
			self._entries[key] = entry

	#============================================
	def keys(self) -> list[str]:
		with self._lock:
			return sorted(self._entries)

	#============================================
	def __len__(self) -> int:
		with self._lock:
			return len(self._entries)
