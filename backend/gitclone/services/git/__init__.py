from __future__ import annotations

"""
Git clone services.

This package provides:
- exceptions: the transport error hierarchy, including the sentinel
  errors the classifier recognises by type
- transport: the clone primitive and the SSH / HTTP auth builders
- orchestrator: clone_with_ssh / clone_with_http, the entry points used by
  the HTTP layer

Import the submodules directly; this package does not re-export them so
that the diagnostics package can depend on `exceptions` alone.
"""
