"""
Pydantic schema definitions for API payloads.

Each domain (users, events, notes, contact) defines its own models for
request and response bodies.  ``common`` holds the response envelope.
"""
