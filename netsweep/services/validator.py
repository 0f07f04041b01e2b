"""Parse and validate "A.B.C.D/N" targets."""

import re

from ..errors import InvalidAddress, InvalidPrefix, MalformedInput
from ..models.network import ADDRESS_BITS, NetworkDescriptor, format_address

_DIGITS = re.compile(r"[0-9]+")


def _decimal(text: str, max_digits: int) -> int | None:
    """Read an unsigned decimal, or None if it is not one or is too long."""
    if not _DIGITS.fullmatch(text):
        return None
    significant = text.lstrip("0") or "0"
    if len(significant) > max_digits:
        return None
    return int(significant)


def _parse_octets(address: str) -> list[int]:
    octets = address.split(".")
    if len(octets) != 4:
        raise InvalidAddress(f"Invalid IP address '{address}': expected 4 octets")

    values = []
    for octet in octets:
        value = _decimal(octet, 3)
        if value is None or value > 255:
            raise InvalidAddress(f"Invalid IP address '{address}': bad octet '{octet}'")
        values.append(value)
    return values


def validate(raw: str) -> NetworkDescriptor:
    """Validate an address with CIDR prefix.

    Raises:
        MalformedInput: input is not exactly one address and one prefix
        InvalidAddress: address is not four decimal octets in 0-255
        InvalidPrefix: prefix is not a number between 0 and 32
    """
    parts = raw.strip().split("/")
    if len(parts) != 2:
        raise MalformedInput("Invalid format, expected IP with CIDR prefix")

    octets = _parse_octets(parts[0].strip())

    prefix = parts[1].strip()
    prefix_length = _decimal(prefix, 2)
    if prefix_length is None:
        if _DIGITS.fullmatch(prefix):
            raise InvalidPrefix(f"CIDR prefix must be a number between 0 - {ADDRESS_BITS}")
        raise InvalidPrefix(f"Invalid CIDR prefix '{prefix}'")
    if prefix_length > ADDRESS_BITS:
        raise InvalidPrefix(f"CIDR prefix must be a number between 0 - {ADDRESS_BITS}")

    base_address = 0
    for value in octets:
        base_address = (base_address << 8) | value

    return NetworkDescriptor(base_address=base_address, prefix_length=prefix_length)


def format_cidr(descriptor: NetworkDescriptor) -> str:
    """Inverse of validate()."""
    return f"{format_address(descriptor.base_address)}/{descriptor.prefix_length}"
