"""Textual frontend for the conversation viewer."""
