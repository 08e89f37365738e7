"""Shared library: configuration, database, import plugins and file storage."""
