"""Custom exception hierarchy for the tessa package."""


class TessaError(Exception):
    """Base exception for all tessa errors."""


class ConfigurationError(TessaError):
    """Missing or invalid configuration."""


class InvalidRecordError(TessaError):
    """Test execution record has neither ``test_id`` nor ``name``."""

    def __init__(self, message: str, index: int | None = None) -> None:
        self.index = index
        if index is not None:
            message = f"record #{index}: {message}"
        super().__init__(message)


class RecordSourceError(TessaError):
    """Failed to read test execution records from a file or payload."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"{source}: {message}")
