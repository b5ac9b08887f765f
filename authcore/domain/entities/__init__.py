"""
Authentication Domain Entities

Each entity in its own file.
"""

from .enums import AccountRole
from .account import Account, normalize_email
from .session import Session

__all__ = [
    # Enums
    "AccountRole",
    # Entities
    "Account",
    "Session",
    # Helpers
    "normalize_email",
]
