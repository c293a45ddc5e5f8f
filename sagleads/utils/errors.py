# sagleads/utils/errors.py

from __future__ import annotations


class SagLeadsError(Exception):
    """Base class for every error raised by sagleads."""


class ConfigError(SagLeadsError):
    pass


class ContractParseError(SagLeadsError):
    """A file could not be opened or read as a spreadsheet."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to parse {source}: {reason}")


class GeocodingError(SagLeadsError):
    """An address could not be turned into coordinates."""

    def __init__(self, address: str, reason: str = "") -> None:
        self.address = address
        self.reason = reason
        msg = f"Could not geocode address: {address}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class StorageError(SagLeadsError):
    pass


class ImportStateError(SagLeadsError):
    pass
