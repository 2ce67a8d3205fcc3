import os

import yaml

from eventlib import event_cache
from eventlib import events_client


TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


#============================================
def load_settings(path_text: str) -> tuple[dict, str]:
	"""
	Load YAML settings from a path relative to cwd.

	A missing file yields empty settings. The resolved absolute path is
	returned alongside for logging.
	"""
	settings_path = os.path.abspath(os.path.expanduser(path_text))
	if not os.path.isfile(settings_path):
		return {}, settings_path
	with open(settings_path, "r", encoding="utf-8") as handle:
		try:
			data = yaml.safe_load(handle)
		except yaml.YAMLError as error:
			raise RuntimeError(f"Invalid YAML in settings file {settings_path}: {error}") from error
	if data is None:
		return {}, settings_path
	if not isinstance(data, dict):
		raise RuntimeError(f"Settings file must contain a mapping: {settings_path}")
	return data, settings_path


#============================================
def get_nested_value(settings: dict, keys: list[str], default_value):
	"""
	Read nested mapping value by key path.
	"""
	current = settings
	for key in keys:
		if not isinstance(current, dict) or key not in current:
			return default_value
		current = current[key]
	return current


#============================================
def get_setting_str(settings: dict, keys: list[str], default_value: str) -> str:
	value = get_nested_value(settings, keys, None)
	if value is None:
		return default_value
	return str(value).strip()


#============================================
def get_setting_positive_float(settings: dict, keys: list[str]) -> float | None:
	"""
	Read an optional number that must be greater than zero.
	"""
	value = get_nested_value(settings, keys, None)
	if value is None:
		return None
	setting_name = ".".join(keys)
	if isinstance(value, bool):
		raise RuntimeError(f"Invalid number for setting path {setting_name}: {value}")
	try:
		number = float(value)
	except (TypeError, ValueError) as error:
		raise RuntimeError(f"Invalid number for setting path {setting_name}: {value}") from error
	if not number > 0:
		raise RuntimeError(f"Setting path {setting_name} must be greater than zero: {value}")
	return number


#============================================
def get_github_token(settings: dict) -> str:
	"""
	Resolve API token from settings, then from environment.
	"""
	value = get_setting_str(settings, ["github", "token"], "")
	if value:
		return value
	for env_name in TOKEN_ENV_VARS:
		env_value = (os.environ.get(env_name, "") or "").strip()
		if env_value:
			return env_value
	return ""


#============================================
def get_api_url(settings: dict) -> str:
	return get_setting_str(settings, ["github", "api_url"], "") or events_client.DEFAULT_API_URL


#============================================
def get_timeout_seconds(settings: dict) -> float | None:
	return get_setting_positive_float(settings, ["github", "timeout_seconds"])


#============================================
def get_cache_path(settings: dict) -> str:
	return get_setting_str(settings, ["cache", "path"], "") or event_cache.DEFAULT_CACHE_FILE
