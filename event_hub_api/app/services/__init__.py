"""
Service layer.

Each service encapsulates the business logic for one domain and talks
to SQLite through ``core.db``.  API handlers only validate input, call
a service and wrap the result in the response envelope.  The pure
registration rules live in ``registration`` and do no I/O.
"""
