#!/usr/bin/env python3
import argparse
import sys
from datetime import datetime
from datetime import timezone

import requests
import rich.console

from eventlib import event_cache
from eventlib import event_settings
from eventlib import events_client
from eventlib.event_models import EventFeedError
from eventlib.event_models import GitHubEvent


CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"
SEPARATOR_LINE = "----------------------"
RICH_CONSOLE = rich.console.Console(stderr=True)


#============================================
def log_step(message: str) -> None:
	"""
	Print one timestamped progress line to stderr.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	line = f"[fetch_github_events {now_text}] {message}"
	lower = message.lower()
	style = "cyan"
	if ("error" in lower) or ("failed" in lower):
		style = "bold red"
	elif ("miss" in lower) or ("expired" in lower) or ("not found" in lower):
		style = "yellow"
	elif ("hit" in lower) or ("saved" in lower) or ("loaded" in lower):
		style = "green"
	RICH_CONSOLE.print(line, style=style, markup=False, highlight=False)


#============================================
def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="fetch_github_events.py",
		description="Print a GitHub user's recent public events, cached for 10 minutes.",
	)
	parser.add_argument(
		"username",
		nargs="?",
		default="",
		help="GitHub username whose events to print.",
	)
	parser.add_argument(
		"--settings",
		default="settings.yaml",
		help="YAML settings path for token, API URL, and cache path.",
	)
	parser.add_argument(
		"--cache-file",
		default="",
		help="Cache JSON path (overrides settings.yaml cache.path).",
	)
	return parser


#============================================
def format_event(event: GitHubEvent) -> str:
	"""
	Render one event as its fixed five-line block plus separator.
	"""
	created_text = event.created_at.astimezone(timezone.utc).strftime(CREATED_AT_FORMAT)
	lines = [
		f"Type: {event.type}",
		f"Actor Login: {event.actor_login}",
		f"Repo Name: {event.repo_name}",
		f"Repo URL: {event.repo_url}",
		f"Created At: {created_text}",
		SEPARATOR_LINE,
	]
	return "\n".join(lines)


#============================================
def main(argv: list[str] | None = None) -> int:
	"""
	Load cache, fetch events for one user, print them, save cache.
	"""
	parser = build_parser()
	args = parser.parse_args(argv)
	username = args.username.strip()
	if not username:
		parser.print_usage(sys.stdout)
		return 0

	try:
		settings, settings_path = event_settings.load_settings(args.settings)
		cache_path = args.cache_file.strip() or event_settings.get_cache_path(settings)
		timeout_seconds = event_settings.get_timeout_seconds(settings)
	except RuntimeError as error:
		log_step(f"Error reading settings: {error}")
		return 1
	log_step(f"Using settings file: {settings_path}")

	cache = event_cache.ExpiringEventCache(cache_path, log_fn=log_step)
	try:
		cache.load()
	except event_cache.CacheFileError as error:
		log_step(str(error))
		return 1

	token = event_settings.get_github_token(settings)
	if not token:
		log_step("Using unauthenticated GitHub API mode (lower rate limit).")
	client = events_client.GitHubEventsClient(
		cache,
		token=token,
		api_url=event_settings.get_api_url(settings),
		timeout_seconds=timeout_seconds,
		log_fn=log_step,
	)
	try:
		events = client.fetch_events(username)
	except (EventFeedError, requests.RequestException) as error:
		log_step(f"Error fetching events: {error}")
		return 1
	finally:
		client.close()

	for event in events:
		print(format_event(event))

	try:
		cache.save()
	except event_cache.CacheFileError as error:
		log_step(str(error))
		return 1
	usage = client.api_usage_snapshot()
	log_step(
		"GitHub API usage: "
		+ f"calls={usage.get('api_call_count', 0)}, "
		+ f"cache_hits={usage.get('cache_hit_count', 0)}, "
		+ f"cache_misses={usage.get('cache_miss_count', 0)}"
	)
	return 0


if __name__ == "__main__":
	sys.exit(main())
