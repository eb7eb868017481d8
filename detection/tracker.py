import logging
from typing import Dict, List, Tuple

from detection.instructions import InstructionKind
from detection.models import ClassifiedTransaction, Pattern

logger = logging.getLogger("detection.tracker")


class PatternTracker:
    """
    Автомат сборки сэндвичей в пределах одного блока.

    Для каждого sandwich-аккаунта: нет записи -> open (CreateSandwichV2)
    -> pending (+ AutoSwapIn) -> паттерн (+ AutoSwapOut). Незавершённые цепочки
    просто остаются брошенными, ошибок трекер не поднимает. AutoSwapOut без
    pending-пары закрывает ключ: запись в open тоже удаляется.
    """

    def __init__(self):
        self.open: Dict[str, ClassifiedTransaction] = {}
        self.pending: Dict[str, Tuple[ClassifiedTransaction, ClassifiedTransaction]] = {}
        self._completed: List[Pattern] = []

    def process(self, tx: ClassifiedTransaction) -> None:
        key = tx.correlation_key
        # Пустой ключ склеил бы несвязанные транзакции
        if not key:
            return

        kind = tx.instruction_type
        if kind is InstructionKind.CREATE_SANDWICH_V2:
            self.open[key] = tx
        elif kind is InstructionKind.AUTO_SWAP_IN:
            create = self.open.pop(key, None)
            if create is not None:
                self.pending[key] = (create, tx)
        elif kind is InstructionKind.AUTO_SWAP_OUT:
            legs = self.pending.pop(key, None)
            if legs is None:
                # SwapOut без SwapIn завершает жизненный цикл ключа
                self.open.pop(key, None)
                return
            create, swap_in = legs
            pattern = Pattern.construct(create, swap_in, tx)
            if pattern is None:
                logger.debug(f"Тройка для {key} отброшена: нарушены инварианты паттерна")
                return
            logger.info(f"Сэндвич собран: sandwich_acc={key} token={pattern.token}")
            self._completed.append(pattern)

    def completed_patterns(self) -> List[Pattern]:
        return list(self._completed)

    def clear_completed(self) -> None:
        self._completed.clear()
