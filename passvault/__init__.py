"""
PassVault - Encrypted Local Password Store
==========================================

Keeps credential entries encrypted at rest under a single master secret
and exposes create/read/update/delete, search and bulk import.

Security Notice:
- No secrets are logged
- Fail-closed design pattern
- Whole-snapshot atomic persistence
"""

__version__ = "0.1.0"
__author__ = "PassVault Team"
