"""
Versioned migrations for MongoDB.

The database version is tracked in a dedicated collection. Each applied or
reverted migration appends a document with the version, an optional
description and a timestamp; the latest document gives the current version.
"""

__version__ = "1.0.0"
