class DetectorError(Exception):
    """Базовое исключение детектора сэндвичей."""
    pass

class TransactionDecodeError(DetectorError):
    """Транзакцию не удалось декодировать (битый wire-формат или неизвестная версия)."""
    pass

class DecimalsResolutionError(DetectorError):
    """Не удалось получить decimals для минта."""
    pass

class RPCRequestError(DetectorError):
    """Ошибка при обращении к RPC после исчерпания всех попыток."""

    def __init__(self, method: str, message: str, code=None):
        super().__init__(f"{method}: {message}")
        self.method = method
        self.code = code
