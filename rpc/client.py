import threading
import time
import logging
import requests
from typing import Optional, Dict, Any, List
import random
from pydantic import ValidationError
import config.config as app_config
from decoder.schemas import Block
from processing.errors import RPCRequestError

# Слот пропущен лидером / блок недоступен: это не ошибка, блока просто нет
SKIPPED_SLOT_ERROR_CODES = {-32004, -32007, -32009}

# --- RateLimiter ---
class RateLimiter:
    """
    Простой и надежный ограничитель скорости, основанный на минимальном интервале между запросами.
    """
    def __init__(self, rate_per_sec: int):
        self.rate_per_sec = max(1, rate_per_sec)
        self.period = 1.0 / self.rate_per_sec
        self.lock = threading.Lock()
        self.last_request_time = 0
        self.logger = logging.getLogger("rpc.ratelimiter")

    def acquire(self):
        with self.lock:
            now = time.monotonic()
            time_since_last = now - self.last_request_time
            if time_since_last < self.period:
                sleep_time = self.period - time_since_last
                self.logger.debug(f"Rate limit: sleeping for {sleep_time:.3f} seconds to maintain {self.rate_per_sec} req/s.")
                time.sleep(sleep_time)
            self.last_request_time = time.monotonic()

# --- RPCClient with retry and key rotation ---
class RPCClient:
    PROVIDER_NAME = 'helius'

    # Retry configuration
    MAX_RETRIES = 5
    BASE_DELAY = 1.0  # секунд
    MAX_DELAY = 30.0  # секунд
    EXPONENTIAL_BASE = 2

    def __init__(
        self,
        api_keys: Optional[List[str]] = None,
        base_url: Optional[str] = None,
        rate_per_sec: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        keys = api_keys if api_keys is not None else app_config.HELIUS_API_KEYS
        self.api_keys = [k for k in keys if k]
        self.base_url = base_url or app_config.HELIUS_RPC_URL
        self.timeout = timeout or app_config.RPC_TIMEOUT_SEC
        self.key_index = 0
        self.rate_limiter = RateLimiter(rate_per_sec=rate_per_sec or app_config.RPC_RATE_LIMIT_PER_SEC)
        self.logger = logging.getLogger("rpc.client.helius")
        if not self.api_keys:
            self.logger.critical("Ключи Helius API не найдены в конфигурации! Пайплайн не сможет работать.")

    def _next_key(self):
        self.key_index = (self.key_index + 1) % len(self.api_keys)
        return self.api_keys[self.key_index]

    def _exponential_backoff_delay(self, attempt: int) -> float:
        """Вычисляет задержку с exponential backoff и jitter."""
        delay = min(self.BASE_DELAY * (self.EXPONENTIAL_BASE ** attempt), self.MAX_DELAY)
        # jitter ±10% от задержки
        jitter = delay * 0.2 * (random.random() - 0.5)
        return delay + jitter

    def _is_retryable_error(self, error: Exception) -> bool:
        """Определяет, стоит ли повторить запрос при данной ошибке."""
        if isinstance(error, (requests.exceptions.ConnectionError,
                              requests.exceptions.Timeout,
                              requests.exceptions.ChunkedEncodingError)):
            return True
        if isinstance(error, requests.exceptions.HTTPError):
            response = getattr(error, 'response', None)
            if response is not None:
                # Retry только на временные ошибки сервера
                return response.status_code in (500, 502, 503, 504, 520, 521, 522, 524)
        return False

    def _make_request(self, payload: dict) -> Any:
        method_name = payload.get('method', 'unknown')
        if not self.api_keys:
            raise RPCRequestError(method_name, "нет доступных API ключей")

        last_error = "неизвестная ошибка"

        # Пробуем все ключи, для каждого ключа retry с backoff
        for _ in range(len(self.api_keys)):
            api_key = self.api_keys[self.key_index]
            url = f"{self.base_url}?api-key={api_key}"

            for retry_attempt in range(self.MAX_RETRIES):
                self.rate_limiter.acquire()
                try:
                    resp = requests.post(url, json=payload, timeout=self.timeout)

                    # Rate limit (429): переключаемся на следующий ключ
                    if resp.status_code == 429:
                        self.logger.warning(f"429 Rate limit для ключа {self.key_index+1}/{len(self.api_keys)} при выполнении {method_name}, переключаемся на следующий ключ...")
                        last_error = "429 Too Many Requests"
                        break

                    resp.raise_for_status()
                    json_resp = resp.json()
                except requests.RequestException as e:
                    last_error = str(e)
                    if retry_attempt < self.MAX_RETRIES - 1 and self._is_retryable_error(e):
                        delay = self._exponential_backoff_delay(retry_attempt)
                        self.logger.warning(
                            f"Попытка {retry_attempt + 1}/{self.MAX_RETRIES} для {method_name} неудачна: {e}. "
                            f"Повтор через {delay:.1f}с..."
                        )
                        time.sleep(delay)
                        continue
                    self.logger.error(f"Запрос {method_name} с ключом {self.key_index+1}/{len(self.api_keys)} не удался: {e}")
                    break

                if "error" in json_resp:
                    error = json_resp.get('error') or {}
                    raise RPCRequestError(method_name, error.get('message', 'unknown'), code=error.get('code'))

                if retry_attempt > 0:
                    self.logger.info(f"Запрос {method_name} успешен после {retry_attempt} повторных попыток")
                return json_resp.get('result')

            self._next_key()

        self.logger.error(f"Не удалось выполнить {method_name} со всеми {len(self.api_keys)} ключами")
        raise RPCRequestError(method_name, last_error)

    def get_slot(self) -> int:
        payload = {"jsonrpc": "2.0", "id": 1, "method": "getSlot", "params": [{"commitment": "confirmed"}]}
        return self._make_request(payload)

    def get_block(self, slot: int) -> Optional[Block]:
        """Возвращает блок или None, если слот пропущен / блок недоступен."""
        payload = {
            "jsonrpc": "2.0", "id": 1, "method": "getBlock",
            "params": [slot, {
                "encoding": "base64",
                "maxSupportedTransactionVersion": 0,
                "transactionDetails": "full",
                "rewards": False,
            }]
        }
        try:
            result = self._make_request(payload)
        except RPCRequestError as e:
            if e.code in SKIPPED_SLOT_ERROR_CODES:
                self.logger.info(f"Слот {slot} пропущен или недоступен: {e}")
                return None
            raise
        if result is None:
            return None
        try:
            return Block.model_validate(result)
        except ValidationError as e:
            raise RPCRequestError("getBlock", f"некорректный ответ для слота {slot}: {e}") from e

    def get_account_info(self, address: str) -> Optional[Dict[str, Any]]:
        payload = {
            "jsonrpc": "2.0", "id": 1, "method": "getAccountInfo",
            "params": [address, {"encoding": "base64"}]
        }
        result = self._make_request(payload)
        if not result:
            return None
        return result.get("value")
