"""
HTTP API package.

Routes are grouped by version; ``v1`` exposes a ``router`` that the
application mounts under ``/api/v1``.
"""
