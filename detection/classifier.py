"""
Классификация вызовов сэндвич-программы внутри транзакции.
"""
import logging
from typing import List, Optional, Sequence, Set

from config.constants import SANDWICH_PROGRAM_ID
from decoder.message import decode_transaction, resolve_account_keys
from decoder.schemas import EncodedTransactionWithMeta
from detection.instructions import InstructionKind, lookup_instruction
from detection.models import ClassifiedTransaction
from detection.swap_extractor import SwapExtractor
from detection.tips import TipDetector
from processing.errors import TransactionDecodeError

logger = logging.getLogger("detection.classifier")


def _native_balance_change(signer_index: Optional[int], pre_balances: Sequence[int], post_balances: Sequence[int]) -> int:
    if signer_index is None:
        return 0
    if signer_index >= len(pre_balances) or signer_index >= len(post_balances):
        return 0
    return post_balances[signer_index] - pre_balances[signer_index]


class InstructionClassifier:
    def __init__(
        self,
        program_id: str = SANDWICH_PROGRAM_ID,
        swap_extractor: Optional[SwapExtractor] = None,
        tip_detector: Optional[TipDetector] = None,
    ):
        self.program_id = program_id
        self.swap_extractor = swap_extractor or SwapExtractor()
        self.tip_detector = tip_detector or TipDetector()

    def classify(
        self,
        transaction: EncodedTransactionWithMeta,
        block_height: int,
        block_time: Optional[int],
    ) -> List[ClassifiedTransaction]:
        """
        Находит известные инструкции программы в транзакции.
        Каждый вид инструкции учитывается не более одного раза на транзакцию.
        Транзакция, которую не удалось декодировать, даёт пустой список.
        """
        try:
            decoded = decode_transaction(transaction.transaction, transaction.version)
        except TransactionDecodeError as e:
            logger.debug(f"Пропуск транзакции, декодирование не удалось: {e}")
            return []

        meta = transaction.meta
        account_keys = resolve_account_keys(decoded, meta)

        try:
            program_idx = account_keys.index(self.program_id)
        except ValueError:
            return []

        signature = decoded.signature
        signer = decoded.signer
        signer_index = account_keys.index(signer) if signer else None

        pre_balances = meta.preBalances if meta else []
        post_balances = meta.postBalances if meta else []
        pre_token_balances = meta.preTokenBalances if meta else None
        post_token_balances = meta.postTokenBalances if meta else None

        tip_amount = self.tip_detector.detect(account_keys, pre_balances, post_balances)
        native_change = _native_balance_change(signer_index, pre_balances, post_balances)

        found: List[ClassifiedTransaction] = []
        processed: Set[InstructionKind] = set()

        for ix in decoded.instructions:
            if ix.program_id_index != program_idx:
                continue
            kind = lookup_instruction(ix.data)
            if kind is None or kind in processed:
                continue
            processed.add(kind)

            correlation_key = kind.resolve_correlation_key(ix.accounts, account_keys)
            swap = self.swap_extractor.infer(ix, account_keys, pre_token_balances, post_token_balances, kind)

            classified = ClassifiedTransaction.from_swap(
                swap,
                signature=signature,
                signer=signer,
                block_height=block_height,
                block_time=block_time,
                instruction_type=kind,
                correlation_key=correlation_key,
                tip_amount=tip_amount,
                native_balance_change=native_change,
            )
            logger.debug(
                f"[{signature[:10]}] {kind.display_name}: sandwich_acc={correlation_key or '-'} "
                f"mint={classified.from_mint or '-'} swapper={classified.swapper or '-'}"
            )
            found.append(classified)

        return found
