from abc import ABC, abstractmethod


class IPasswordHasher(ABC):
    """One-way credential hashing - application layer"""

    @abstractmethod
    def hash(self, plaintext: str) -> str:
        """
        Hash a password with a slow, salted, self-describing algorithm.

        Raises:
            InvalidInputError: plaintext is empty or cannot be hashed
        """
        pass

    @abstractmethod
    def verify(self, plaintext: str, hashed: str) -> bool:
        """Check a password against a stored hash. Never raises; False on any error."""
        pass

    @abstractmethod
    def dummy_verify(self, plaintext: str) -> None:
        """Spend one verification's worth of work (used when no account matched)"""
        pass
