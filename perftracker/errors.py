"""Errors raised by the pipeline before any I/O happens."""


class InvalidRequestError(ValueError):
    """Caller passed parameters the pipeline cannot serve (count, offset, Riot ID)."""
    pass
