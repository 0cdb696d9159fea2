"""
Top-level package for the Event Hub API.

All functionality lives in submodules under ``app``; import the ASGI
application as ``event_hub_api.app.main:app``.
"""

__all__ = []
