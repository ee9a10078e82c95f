# backend/gitclone/__init__.py
from __future__ import annotations

"""
Marks `gitclone` as a Python package.

Routers live in gitclone/api, clone services in gitclone/services.
"""
