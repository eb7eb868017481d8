"""
Реестр токенов с заранее известной точностью (decimals).
Используется для начального заполнения кэша decimals, чтобы не ходить в RPC за популярными минтами.
"""
from typing import Dict, Any, Optional

TOKEN_REGISTRY: Dict[str, Dict[str, Any]] = {
    "So11111111111111111111111111111111111111112": {  # wSOL
        "symbol": "WSOL",
        "decimals": 9,
    },
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": {
        "symbol": "USDC",
        "decimals": 6,
    },
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": {
        "symbol": "USDT",
        "decimals": 6,
    },
    "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So": {  # mSOL (Marinade)
        "symbol": "mSOL",
        "decimals": 9,
    },
    "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R": {
        "symbol": "RAY",
        "decimals": 6,
    },
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": {
        "symbol": "BONK",
        "decimals": 5,
    },
}

def get_token_symbol(mint: str) -> Optional[str]:
    """Возвращает тикер токена, если он есть в реестре."""
    return TOKEN_REGISTRY.get(mint, {}).get("symbol")

# Константы для быстрого доступа
KNOWN_TOKEN_DECIMALS: Dict[str, int] = {
    mint: info["decimals"] for mint, info in TOKEN_REGISTRY.items()
}
