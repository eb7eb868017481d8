"""
Кэш точности (decimals) токенов.

Кэш передаётся явно туда, где он нужен; в тестах вместо RPC подставляется
любая функция mint -> decimals.
"""
import base64
import logging
import threading
from typing import Callable, Dict, Optional

from borsh_construct import CStruct, U8, U32, U64

from processing.errors import DecimalsResolutionError, DetectorError

logger = logging.getLogger("services.token_decimals")

# Layout SPL Token mint-аккаунта (82 байта, у Token-2022 дальше идут расширения)
MintLayout = CStruct(
    "mint_authority_option" / U32,
    "mint_authority" / U8[32],
    "supply" / U64,
    "decimals" / U8,
    "is_initialized" / U8,
    "freeze_authority_option" / U32,
    "freeze_authority" / U8[32],
)
MINT_LAYOUT_SIZE = 82  # decimals лежат по смещению 44

DecimalsResolver = Callable[[str], int]


def parse_mint_decimals(account_data: bytes) -> int:
    if len(account_data) < MINT_LAYOUT_SIZE:
        raise DecimalsResolutionError(
            f"Данные аккаунта слишком короткие для mint: {len(account_data)} < {MINT_LAYOUT_SIZE}"
        )
    return MintLayout.parse(account_data[:MINT_LAYOUT_SIZE]).decimals


def rpc_mint_decimals_resolver(rpc_client) -> DecimalsResolver:
    """Резолвер, читающий decimals из mint-аккаунта через getAccountInfo."""
    def resolve(mint: str) -> int:
        account = rpc_client.get_account_info(mint)
        if not account:
            raise DecimalsResolutionError(f"Mint-аккаунт {mint} не найден")
        data_field = account.get("data")
        if not isinstance(data_field, list) or not data_field:
            raise DecimalsResolutionError(f"Неожиданный формат данных аккаунта {mint}")
        try:
            raw = base64.b64decode(data_field[0])
        except ValueError as e:
            raise DecimalsResolutionError(f"Не удалось декодировать данные mint {mint}: {e}") from e
        return parse_mint_decimals(raw)
    return resolve


class TokenDecimalsCache:
    """
    Потокобезопасный кэш mint -> decimals.

    Повторный резолв одного минта из разных потоков допустим: значение
    неизменно, поэтому побеждает последний записавший.
    """

    def __init__(self, resolver: DecimalsResolver, seed: Optional[Dict[str, int]] = None):
        self._resolver = resolver
        self._cache: Dict[str, int] = dict(seed or {})
        self._lock = threading.Lock()

    def get(self, mint: str) -> Optional[int]:
        with self._lock:
            return self._cache.get(mint)

    def get_or_resolve(self, mint: str) -> int:
        cached = self.get(mint)
        if cached is not None:
            return cached

        # Сетевой вызов идёт без удержания блокировки
        try:
            decimals = self._resolver(mint)
        except DecimalsResolutionError:
            raise
        except DetectorError as e:
            raise DecimalsResolutionError(f"Не удалось получить decimals для {mint}: {e}") from e

        with self._lock:
            self._cache[mint] = decimals
        logger.debug(f"Decimals для {mint}: {decimals}")
        return decimals

    def __contains__(self, mint: str) -> bool:
        with self._lock:
            return mint in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
