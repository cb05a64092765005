"""
Exceptions raised by Objectify Recs.
"""


class ObjectifyError(Exception):
    """Base class for every error raised by the package."""


class DescriptorServiceError(ObjectifyError):
    """The descriptor service could not produce a description."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class DescriptorFormatError(ObjectifyError):
    """The description doesn't carry the expected feature lines."""

    def __init__(self, message: str, fields=None):
        super().__init__(message)
        self.fields = list(fields or [])
