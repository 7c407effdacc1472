"""Exceptions raised by odbkit."""


class OdbError(Exception):
    """Base exception for all odbkit errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(OdbError, ValueError):
    """Raised when a hex SHA is malformed."""

    def __init__(self, sha):
        super().__init__(f'Invalid hex SHA "{sha}"', {'sha': sha})
        self.sha = sha


class OpenError(OdbError, RuntimeError):
    """Raised when a repository cannot be opened or created."""

    pass


class ObjectNotFoundError(OdbError, LookupError):
    """Raised when an object is not in the database."""

    def __init__(self, message: str, sha: str | None = None):
        super().__init__(message, {'sha': sha} if sha else None)
        self.sha = sha


class DanglingEntryError(ObjectNotFoundError):
    """Raised when a tree entry points at an object missing from the database."""

    def __init__(self, sha: str, name: str):
        super().__init__(f'Tree entry "{name}" points at missing object {sha}', sha)
        self.details['name'] = name
        self.name = name


class WriteError(OdbError, RuntimeError):
    """Raised when an object cannot be written to the database."""

    pass


class ReadError(OdbError, RuntimeError):
    """Raised when a stored object is corrupt or unreadable."""

    pass


class RepositoryClosedError(OdbError, RuntimeError):
    """Raised when a closed repository is used."""

    pass


class ConfigError(OdbError, ValueError):
    """Raised when a config file cannot be parsed or holds a bad value."""

    pass
