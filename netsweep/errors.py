"""Exceptions raised while validating input and scanning a subnet."""


class ScanError(Exception):
    """Base class for errors that stop a scan."""


class InputValidationError(ScanError):
    """The target string is not a usable IPv4 address/prefix pair."""


class MalformedInput(InputValidationError):
    """Input does not split into exactly one address and one prefix."""


class InvalidAddress(InputValidationError):
    """Address part is not four octets in the range 0-255."""


class InvalidPrefix(InputValidationError):
    """Prefix part is not a number between 0 and 32."""


class ProbeMechanismUnavailable(ScanError):
    """The echo facility could not be invoked at all."""
