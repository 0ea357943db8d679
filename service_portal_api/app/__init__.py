"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Storage (``store``), business logic (``services``),
payload models (``schemas``) and HTTP routes (``api``) live in their
own subpackages.  Routers are grouped under ``api/<version>/``.
"""

from .main import app, create_app  # noqa: F401
