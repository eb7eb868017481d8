# Файл: processing/block_processor.py
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config.constants import SANDWICH_PROGRAM_ID, VOTE_PROGRAM_ID
from decoder.schemas import Block, EncodedTransactionWithMeta
from detection.classifier import InstructionClassifier
from detection.models import ClassifiedTransaction, Pattern
from detection.tracker import PatternTracker
from processing.errors import DecimalsResolutionError
from services.token_decimals import TokenDecimalsCache

logger = logging.getLogger("processing.block")


@dataclass
class BlockResult:
    block_height: int
    block_time: Optional[int]
    total_transactions: int = 0
    candidate_transactions: int = 0
    instruction_counts: Dict[str, int] = field(default_factory=dict)
    patterns: List[Pattern] = field(default_factory=list)


def is_candidate_transaction(tx: EncodedTransactionWithMeta, program_id: str = SANDWICH_PROGRAM_ID) -> bool:
    """
    Успешная не-vote транзакция, в логах которой упоминается сэндвич-программа.
    Транзакции без meta или без логов отбрасываются.
    """
    meta = tx.meta
    if meta is None or not meta.succeeded:
        return False
    logs = meta.logMessages
    if not logs:
        return False
    if any(VOTE_PROGRAM_ID in line for line in logs):
        return False
    return any(program_id in line for line in logs)


class BlockProcessor:
    """
    Прогоняет транзакции одного блока через классификатор и трекер.
    Порядок транзакций блока сохраняется: трекер зависит от него.
    """

    def __init__(
        self,
        decimals_cache: TokenDecimalsCache,
        classifier: Optional[InstructionClassifier] = None,
        program_id: str = SANDWICH_PROGRAM_ID,
    ):
        self.decimals_cache = decimals_cache
        self.program_id = program_id
        self.classifier = classifier or InstructionClassifier(program_id=program_id)

    def process_block(self, block: Block) -> BlockResult:
        block_height = block.blockHeight or 0
        result = BlockResult(block_height=block_height, block_time=block.blockTime)
        if not block.transactions:
            return result

        # Состояние трекера живёт ровно один блок
        tracker = PatternTracker()
        counts: Counter = Counter()
        result.total_transactions = len(block.transactions)

        for tx in block.transactions:
            if not is_candidate_transaction(tx, self.program_id):
                continue
            result.candidate_transactions += 1
            for classified in self.classifier.classify(tx, block_height, block.blockTime):
                counts[classified.instruction_type.display_name] += 1
                tracker.process(self._with_resolved_decimals(classified))

        result.instruction_counts = dict(counts)
        result.patterns = tracker.completed_patterns()
        logger.info(
            f"Блок {block_height}: транзакций {result.total_transactions}, кандидатов {result.candidate_transactions}, "
            f"паттернов {len(result.patterns)}"
        )
        return result

    def _with_resolved_decimals(self, classified: ClassifiedTransaction) -> ClassifiedTransaction:
        if not classified.has_swap:
            return classified
        try:
            decimals = self.decimals_cache.get_or_resolve(classified.from_mint)
        except DecimalsResolutionError as e:
            logger.warning(f"Не удалось получить decimals для токена {classified.from_mint}: {e}")
            return classified
        return classified.with_decimals(decimals)
