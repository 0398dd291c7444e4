"""Auth API Package: startup shell for the token-authenticated API.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""

__version__ = "1.0.0"
