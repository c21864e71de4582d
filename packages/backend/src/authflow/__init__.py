"""authflow — account and session service.

Signup, password login, bearer-token verification, role gating and the
password-reset-by-email flow for a web backend.
"""

__version__ = "0.1.0"
