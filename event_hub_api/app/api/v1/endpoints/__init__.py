"""
Endpoint subpackage for API v1.

Each module defines an ``APIRouter`` for one domain (auth, events,
notes, users, contact).  The routers are aggregated in ``router.py``.
"""
