"""Subnet mask arithmetic and host enumeration."""

from collections.abc import Iterator

from ..models.network import ADDRESS_BITS, NetworkDescriptor, format_address


def subnet_mask(prefix_length: int, bits: int = ADDRESS_BITS) -> int:
    """Return a mask with prefix_length leading one-bits within a bits-wide word."""
    if not 0 <= prefix_length <= bits:
        raise ValueError(f"prefix_length must be between 0 and {bits}, got {prefix_length}")
    all_ones = (1 << bits) - 1
    return all_ones ^ ((1 << (bits - prefix_length)) - 1)


def iter_addresses(
    base_address: int,
    prefix_length: int,
    bits: int = ADDRESS_BITS,
    skip_edges: bool = False,
) -> Iterator[int]:
    """Yield every address sharing base_address's top prefix_length bits.

    Ascending by host offset, network and broadcast addresses included
    unless skip_edges is set (ignored for the two smallest prefixes).
    """
    mask = subnet_mask(prefix_length, bits)
    network = base_address & mask
    size = 1 << (bits - prefix_length)

    start, stop = 0, size
    if skip_edges and size > 2:
        start, stop = 1, size - 1

    for offset in range(start, stop):
        yield network | offset


class AddressSpace:
    """All addresses covered by a network descriptor."""

    def __init__(self, descriptor: NetworkDescriptor, exclude_network_broadcast: bool = False):
        self.descriptor = descriptor
        self.exclude_network_broadcast = exclude_network_broadcast
        self.subnet_mask = subnet_mask(descriptor.prefix_length)
        self.network_address = descriptor.base_address & self.subnet_mask
        self.broadcast_address = self.network_address | (~self.subnet_mask & 0xFFFFFFFF)

    @property
    def size(self) -> int:
        """Number of addresses the prefix covers (2 ** host bits)."""
        return 1 << (ADDRESS_BITS - self.descriptor.prefix_length)

    @property
    def cidr(self) -> str:
        """Normalised network/prefix string."""
        return f"{format_address(self.network_address)}/{self.descriptor.prefix_length}"

    def addresses(self) -> Iterator[int]:
        """Return a fresh iterator over the enumerated addresses."""
        return iter_addresses(
            self.descriptor.base_address,
            self.descriptor.prefix_length,
            skip_edges=self.exclude_network_broadcast,
        )

    def __iter__(self) -> Iterator[int]:
        return self.addresses()

    def __len__(self) -> int:
        if self.exclude_network_broadcast and self.size > 2:
            return self.size - 2
        return self.size

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, int):
            return False
        if address & self.subnet_mask != self.network_address:
            return False
        if self.exclude_network_broadcast and self.size > 2:
            return address not in (self.network_address, self.broadcast_address)
        return True

    def __repr__(self) -> str:
        return f"AddressSpace({self.cidr!r}, size={len(self)})"
