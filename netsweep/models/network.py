"""IPv4 network descriptor model."""

import ipaddress

from pydantic import BaseModel, ConfigDict, Field

ADDRESS_BITS = 32
MAX_ADDRESS = (1 << ADDRESS_BITS) - 1


def format_address(address: int) -> str:
    """Render a 32-bit integer as a dotted-quad string."""
    return str(ipaddress.IPv4Address(address))


class NetworkDescriptor(BaseModel):
    """A validated address/prefix pair, e.g. 192.168.1.7/24.

    The base address keeps its host bits; masking happens in AddressSpace.
    """

    model_config = ConfigDict(frozen=True)

    base_address: int = Field(ge=0, le=MAX_ADDRESS)
    prefix_length: int = Field(ge=0, le=ADDRESS_BITS)

    @property
    def address(self) -> str:
        """Dotted-quad form of the base address."""
        return format_address(self.base_address)

    def __str__(self) -> str:
        return f"{self.address}/{self.prefix_length}"
