import os

import pytest

from eventlib import event_settings


#============================================
def test_load_settings_missing_file(tmp_path) -> None:
	"""
	Missing settings file should return empty settings.
	"""
	settings, resolved_path = event_settings.load_settings(str(tmp_path / "missing.yaml"))
	assert settings == {}
	assert resolved_path.endswith("missing.yaml")


#============================================
def test_load_settings_reads_yaml(tmp_path) -> None:
	"""
	YAML settings should be parsed into nested mapping values.
	"""
	settings_path = tmp_path / "settings.yaml"
	settings_path.write_text(
		"github:\n"
		"  api_url: https://ghe.example.com/api/v3\n"
		"  timeout_seconds: 15\n"
		"cache:\n"
		"  path: out/cache.json\n",
		encoding="utf-8",
	)
	settings, _ = event_settings.load_settings(str(settings_path))
	assert event_settings.get_api_url(settings) == "https://ghe.example.com/api/v3"
	assert event_settings.get_timeout_seconds(settings) == 15
	assert event_settings.get_cache_path(settings) == "out/cache.json"


#============================================
def test_load_settings_non_mapping_raises(tmp_path) -> None:
	"""
	A settings file holding a list should raise RuntimeError.
	"""
	settings_path = tmp_path / "settings.yaml"
	settings_path.write_text("- one\n- two\n", encoding="utf-8")
	with pytest.raises(RuntimeError):
		event_settings.load_settings(str(settings_path))


#============================================
def test_defaults_when_settings_empty() -> None:
	"""
	Empty settings should fall back to the public API and cache.json.
	"""
	assert event_settings.get_api_url({}) == "https://api.github.com"
	assert event_settings.get_cache_path({}) == "cache.json"
	assert event_settings.get_timeout_seconds({}) is None


#============================================
def test_non_numeric_timeout_raises() -> None:
	"""
	Non-numeric timeout setting should raise RuntimeError.
	"""
	settings = {"github": {"timeout_seconds": "abc"}}
	with pytest.raises(RuntimeError):
		event_settings.get_timeout_seconds(settings)


#============================================
def test_github_token_prefers_settings_then_env(monkeypatch) -> None:
	"""
	Token should come from settings first, then GITHUB_TOKEN, then GH_TOKEN.
	"""
	monkeypatch.delenv("GITHUB_TOKEN", raising=False)
	monkeypatch.setenv("GH_TOKEN", "from-gh")
	assert event_settings.get_github_token({}) == "from-gh"
	monkeypatch.setenv("GITHUB_TOKEN", "from-github")
	assert event_settings.get_github_token({}) == "from-github"
	assert event_settings.get_github_token({"github": {"token": " from-settings "}}) == "from-settings"


#============================================
@pytest.mark.parametrize("value", [0, -1, 0.0, True])
def test_non_positive_timeout_raises(value) -> None:
	"""
	Zero, negative, and boolean timeouts should raise RuntimeError.
	"""
	with pytest.raises(RuntimeError):
		event_settings.get_timeout_seconds({"github": {"timeout_seconds": value}})


#============================================
def test_fractional_timeout_is_kept() -> None:
	"""
	Sub-second timeouts should not be truncated to zero.
	"""
	assert event_settings.get_timeout_seconds({"github": {"timeout_seconds": 0.5}}) == 0.5


#============================================
def test_load_settings_resolves_against_cwd(tmp_path, monkeypatch) -> None:
	"""
	Relative settings paths should resolve against the working directory.
	"""
	monkeypatch.chdir(tmp_path)
	(tmp_path / "settings.yaml").write_text("cache:\n  path: here.json\n", encoding="utf-8")
	settings, resolved_path = event_settings.load_settings("settings.yaml")
	assert os.path.samefile(resolved_path, tmp_path / "settings.yaml")
	assert event_settings.get_cache_path(settings) == "here.json"
