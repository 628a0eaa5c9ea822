from eth_utils import is_address, to_checksum_address

from core.constants import ZERO_ADDRESS


def is_valid_wallet_address(wallet_address):
    if not is_address(wallet_address):
        return False
    return to_checksum_address(wallet_address)


def normalize_address(address: str | None) -> str | None:
    """Checksum hex addresses; other identifiers only get trimmed."""
    if address is None:
        return None
    address = address.strip()
    checksummed = is_valid_wallet_address(address)
    return checksummed if checksummed else address


def is_zero_address(address: str | None) -> bool:
    if address is None:
        return True
    address = address.strip()
    return address == "" or address.lower() == ZERO_ADDRESS


def same_address(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return False
    return a.strip().lower() == b.strip().lower()
