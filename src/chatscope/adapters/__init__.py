"""Adapters implementing the core ports (HTTP, SQLite, GroupMe)."""
