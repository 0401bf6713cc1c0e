"""
Public Pydantic schemas used by FastAPI routes, services, and tests.

Settings forms and read models live in settings.py; common.py holds the
standard message and error envelopes.
"""

from .common import MessageResponse  # noqa: F401
