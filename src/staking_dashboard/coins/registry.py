"""Load and look up coin configuration."""
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from staking_dashboard.coins.models import CoinConfig

logger = logging.getLogger(__name__)

DEFAULT_COINS_FILE = Path(__file__).with_name("coins.json")


class CoinRegistry:
    """Coin configuration keyed by lowercase id (e.g. "eth", "pivx").

    Lookups accept the key or the ticker symbol in any case.
    """

    def __init__(self, coins: dict[str, CoinConfig]) -> None:
        self._coins = {key.lower(): coin for key, coin in coins.items()}
        self._by_symbol = {coin.symbol.lower(): key for key, coin in self._coins.items()}

    def get(self, symbol: str) -> CoinConfig | None:
        """Return the coin for a key or ticker symbol, or None if unknown."""
        norm = symbol.strip().lower()
        key = norm if norm in self._coins else self._by_symbol.get(norm)
        return self._coins.get(key) if key else None

    def all(self) -> list[CoinConfig]:
        return list(self._coins.values())

    def enabled(self) -> list[CoinConfig]:
        return [coin for coin in self._coins.values() if coin.enabled]

    def __contains__(self, symbol: str) -> bool:
        return self.get(symbol) is not None

    def __len__(self) -> int:
        return len(self._coins)


def load_coin_registry(path: str | Path | None = None) -> CoinRegistry:
    """Read and validate the coin document.

    Args:
        path: JSON file to load; defaults to the packaged coins.json.

    Raises:
        ValueError: If the document is not valid JSON or fails validation.
    """
    source = Path(path) if path else DEFAULT_COINS_FILE
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
        coins = {key: CoinConfig.model_validate(item) for key, item in raw.items()}
    except (json.JSONDecodeError, ValidationError, AttributeError) as exc:
        raise ValueError(f"Invalid coin configuration in {source}: {exc}") from exc
    logger.info(
        "Loaded %d coins from %s (%d enabled)",
        len(coins),
        source,
        sum(1 for c in coins.values() if c.enabled),
    )
    return CoinRegistry(coins)
