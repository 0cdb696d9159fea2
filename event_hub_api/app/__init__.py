"""
Application package initializer.

Layout:

* ``core`` - settings, logging, database access, security and the
  service exceptions;
* ``schemas`` - pydantic request/response models;
* ``services`` - business logic, one service per domain;
* ``api/v1`` - routers, one module per domain under ``endpoints``.
"""

from .main import app  # noqa: F401
