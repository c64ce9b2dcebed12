from enum import Enum

from beartype import beartype


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"

    @staticmethod
    @beartype
    def parse(text: str) -> "OrderSide":
        """Parse a case-insensitive side ("buy", "SELL", ...); raises ValueError otherwise."""
        try:
            return OrderSide(text.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown order side: {text!r}") from None

    @beartype
    def to_venue(self) -> str:
        return self.value.upper()
