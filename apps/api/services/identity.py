"""Identity helpers. An identity is just a wallet address string; no signature is verified."""

from apps.api.services.errors import InvalidArgument, Unauthenticated

ADDRESS_MAX_LENGTH = 255


def require_address(address: str | None) -> str:
    """
    Validate address; return stripped value. Raises Unauthenticated if missing/empty.
    Call before any identity-bound write.
    """
    if address is None or not str(address).strip():
        raise Unauthenticated("Wallet address is required.")
    value = str(address).strip()
    if len(value) > ADDRESS_MAX_LENGTH:
        raise InvalidArgument("Wallet address is too long.")
    return value


def optional_address(address: str | None) -> str | None:
    """Stripped address, or None when absent/blank. For read paths where the viewer is optional."""
    if address is None or not str(address).strip():
        return None
    return str(address).strip()


def resolve_display_name(address: str) -> str:
    """Short display form for an address: 0x1234...abcd. Short strings are returned unchanged."""
    if not address:
        return ""
    if len(address) <= 12:
        return address
    return f"{address[:6]}...{address[-4:]}"
