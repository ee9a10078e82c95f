from __future__ import annotations

"""
Diagnostics and error classification utilities.

This package currently provides:
- error_classifier: map failures raised by the git transport layer onto a
  small, stable set of error kinds that the HTTP layer turns into status
  codes.

The goal is to keep error handling logic centralized and deterministic.
"""
