class RepositoryError(Exception):
    """Persistence layer failure (store unavailable, constraint violation, ...)"""


class DuplicateAccountError(RepositoryError):
    """A write collided with the unique username or email of another account"""

    def __init__(self, field: str):
        super().__init__(f"{field} already exists")
        self.field = field
