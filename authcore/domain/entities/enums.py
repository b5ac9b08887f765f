"""
Authentication Domain Enums
"""

from enum import Enum


class AccountRole(str, Enum):
    """Authorization role of an account"""

    admin = "Admin"
    manager = "Manager"
    employee = "Employee"

    @classmethod
    def parse(cls, value: str) -> "AccountRole":
        """Parse a role by value ("Admin") or name ("admin"); raises ValueError"""
        for role in cls:
            if value == role.value or value == role.name:
                return role
        raise ValueError(
            f"Role must be one of: {', '.join(role.value for role in cls)}"
        )
