"""Core domain package for chatscope.

Core contains the message models, the pagination state and the viewer
controller without any Textual, HTTP or SQLite code, keeping the viewing
logic portable across backends and frontends.
"""
