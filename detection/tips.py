from typing import Sequence, AbstractSet

from config.constants import JITO_TIP_ADDRESSES, MIN_JITO_TIP


def is_jito_tip_address(address: str, tip_addresses: AbstractSet[str] = JITO_TIP_ADDRESSES) -> bool:
    return address in tip_addresses


def detect_jito_tip(
    account_keys: Sequence[str],
    pre_balances: Sequence[int],
    post_balances: Sequence[int],
    min_tip: int = MIN_JITO_TIP,
    tip_addresses: AbstractSet[str] = JITO_TIP_ADDRESSES,
) -> int:
    """
    Сумма lamports, пришедших на tip-аккаунты Jito.
    Уменьшение баланса никогда не считается чаевыми; учитываются приросты от min_tip включительно.
    """
    total_tip = 0
    for key, pre, post in zip(account_keys, pre_balances, post_balances):
        diff = max(post - pre, 0)
        if diff >= min_tip and is_jito_tip_address(key, tip_addresses):
            total_tip += diff
    return total_tip


class TipDetector:
    """Порог и набор tip-аккаунтов фиксируются при создании; detect() без побочных эффектов."""

    def __init__(self, min_tip: int = MIN_JITO_TIP, tip_addresses: AbstractSet[str] = JITO_TIP_ADDRESSES):
        self.min_tip = min_tip
        self.tip_addresses = tip_addresses

    def detect(self, account_keys: Sequence[str], pre_balances: Sequence[int], post_balances: Sequence[int]) -> int:
        return detect_jito_tip(account_keys, pre_balances, post_balances, self.min_tip, self.tip_addresses)
