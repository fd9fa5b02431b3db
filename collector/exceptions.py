from __future__ import annotations


class TapestryError(Exception):
    """Base class for failures raised by the collector and renderer."""


class NoDataError(TapestryError):
    """
    The fetched payload carries no usable trending rows.

    Fatal: raised before anything is written, mapped to exit status 1 by the CLIs.
    """

    def __init__(self, message: str, raw_preview: str = "") -> None:
        super().__init__(message)
        self.raw_preview = raw_preview


class MalformedSliceError(TapestryError):
    """A stored slice file decodes as JSON but does not have the slice shape."""
