# backend/gitclone/services/__init__.py
"""
Service layer.

- git: clone orchestration and the git / OpenSSH transport
- diagnostics: classification of transport failures
"""
