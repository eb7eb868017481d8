"""
Восстановление экономики свопа по снапшотам токен-балансов до/после транзакции.

Алгоритм эвристический: основной минт выбирается по максимальному абсолютному
изменению среди аккаунтов инструкции (wSOL исключён), затем берутся первое
уменьшение и первое увеличение этого минта. Все обходы идут по возрастанию
индекса аккаунта, поэтому "первый" определён однозначно.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from config.constants import HOLDING_ACCOUNT, LAMPORTS_PER_SOL, WSOL_MINT, DEFAULT_DECIMALS
from decoder.message import CompiledInstruction
from decoder.schemas import TokenBalance
from detection.instructions import InstructionKind
from detection.models import SwapInfo

logger = logging.getLogger("detection.swap_extractor")


def _balances_by_index(balances: Optional[Sequence[TokenBalance]], relevant) -> Dict[int, TokenBalance]:
    return {b.accountIndex: b for b in balances or [] if b.accountIndex in relevant}


class SwapExtractor:
    def __init__(self, wsol_mint: str = WSOL_MINT, holding_account: str = HOLDING_ACCOUNT):
        self.wsol_mint = wsol_mint
        self.holding_account = holding_account

    def infer(
        self,
        instruction: CompiledInstruction,
        account_keys: Sequence[str],
        pre_token_balances: Optional[Sequence[TokenBalance]],
        post_token_balances: Optional[Sequence[TokenBalance]],
        kind: InstructionKind,
    ) -> Optional[SwapInfo]:
        relevant = {idx for idx in instruction.accounts if idx < len(account_keys)}
        pre_map = _balances_by_index(pre_token_balances, relevant)
        post_map = _balances_by_index(post_token_balances, relevant)

        primary_mint = ""
        max_abs_change = 0
        mint_changes: Dict[str, List[Tuple[int, int]]] = defaultdict(list)

        for idx in sorted(pre_map):
            post_balance = post_map.get(idx)
            if post_balance is None:
                continue
            pre_balance = pre_map[idx]
            change = post_balance.raw_amount - pre_balance.raw_amount
            if change == 0 or pre_balance.mint == self.wsol_mint:
                continue
            # строгое ">" оставляет первый минт при равенстве
            if abs(change) > max_abs_change:
                max_abs_change = abs(change)
                primary_mint = pre_balance.mint
            mint_changes[pre_balance.mint].append((change, idx))

        if not primary_mint:
            return None

        token_changes = mint_changes[primary_mint]
        decreases = [c for c in token_changes if c[0] < 0]
        increases = [c for c in token_changes if c[0] > 0]
        if not decreases or not increases:
            return None

        dec_change, dec_idx = decreases[0]
        inc_change, _ = increases[0]
        swapper = pre_map[dec_idx].owner or ""

        # Взаимодействия с собственным хранилищем стратегии не являются свопами жертвы
        if swapper == self.holding_account:
            logger.info(f"Отфильтрован своп с участием holding-аккаунта: {swapper}")
            return None

        return SwapInfo(
            swapper=swapper,
            from_mint=primary_mint,
            to_mint=primary_mint,
            from_amount=abs(dec_change),
            to_amount=inc_change,
            counter_leg_change=self._counter_leg_change(pre_map, post_map, swapper, kind),
            decimals=DEFAULT_DECIMALS,  # уточняется позже через кэш decimals
        )

    def _counter_leg_change(
        self,
        pre_map: Dict[int, TokenBalance],
        post_map: Dict[int, TokenBalance],
        owner: str,
        kind: InstructionKind,
    ) -> Optional[float]:
        """Изменение wSOL владельца уменьшающейся ноги, в SOL; знак нормализован по виду инструкции."""
        if not owner or not kind.tracks_counter_leg:
            return None
        for idx in sorted(pre_map):
            pre_balance = pre_map[idx]
            post_balance = post_map.get(idx)
            if post_balance is None or pre_balance.mint != self.wsol_mint:
                continue
            if pre_balance.owner != owner:
                continue
            delta = post_balance.raw_amount - pre_balance.raw_amount
            # Считаем только одно изменение wSOL на инструкцию
            return kind.wsol_sign * delta / LAMPORTS_PER_SOL
        return None
