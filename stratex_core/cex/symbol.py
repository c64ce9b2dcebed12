import re

from beartype import beartype

_TOKEN_PATTERN = re.compile(r"^[A-Z0-9]+$")


@beartype
def to_pair(token: str, quote_asset: str = "USDT") -> str:
    """
    Build the venue pair for a token: uppercase it and append the quote asset.

    Example: to_pair("eth") -> "ETHUSDT"
    Raises ValueError for empty or non-alphanumeric tokens.
    """
    base = token.strip().upper()
    if not _TOKEN_PATTERN.match(base):
        raise ValueError(f"Invalid token symbol: {token!r}")
    return f"{base}{quote_asset.upper()}"
