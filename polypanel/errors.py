from __future__ import annotations


class PanelError(Exception):
    """Base class for control panel errors."""


class DataUnavailableError(PanelError):
    """A polled resource could not be fetched (transport failure, timeout, HTTP error)."""


class PayloadError(DataUnavailableError):
    """The server answered, but the payload could not be decoded."""


class InvalidInputError(PanelError, ValueError):
    """User input rejected before anything is sent to the server."""
