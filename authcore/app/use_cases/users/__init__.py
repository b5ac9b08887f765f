"""
User Management Use Cases

Administrative account management.
"""

from .account_admin_use_case import AccountAdminUseCase

__all__ = [
    "AccountAdminUseCase",
]
