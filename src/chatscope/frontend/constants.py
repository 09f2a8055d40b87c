"""Shared constants for the Textual UI."""

from __future__ import annotations

ACCENT = "#00AFF0"
SEARCH_GROUP = "search"
OPEN_GROUP = "open"
PAGE_GROUP = "paging"
