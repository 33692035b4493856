"""Exceptions raised by the infrared receiver."""


class ReceiverError(Exception):
    """Base class for receiver errors."""


class ResourceInUse(ReceiverError):
    """The input line is already claimed by another component."""


class InvalidState(ReceiverError):
    """The operation is not valid in the receiver's current state."""


class DecodeError(ReceiverError):
    """A pulse train could not be decoded and was discarded."""
