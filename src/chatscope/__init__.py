"""chatscope: search a chat archive and read the conversation around a hit."""

__version__ = "1.0.0"
