"""Conversational assistant over a project tracker's requirements, defects and releases."""

__version__ = "0.1.0"
