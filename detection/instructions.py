"""
Известные инструкции сэндвич-программы.

Каждый вид инструкции несёт свою схему: дискриминатор (первые 8 байт данных),
кандидатные позиции sandwich-аккаунта в списке аккаунтов инструкции
и знак, с которым считается изменение wSOL.
"""
from enum import Enum
from typing import Dict, Optional, Tuple

DISCRIMINATOR_LENGTH = 8


class InstructionKind(Enum):
    # value: (discriminator hex, anchor name, слоты sandwich-аккаунта, знак wSOL)
    # Дискриминатор = sha256("global:<anchor name>")[:8]
    CREATE_SANDWICH_V2 = ("b3ecc1a00df8fe9a", "create_sandwich_v2", (2,), 0)
    AUTO_SWAP_IN = ("5bb527f9eccb5e90", "auto_swap_in", (6, 7), 1)
    AUTO_SWAP_OUT = ("b024faebda2bde25", "auto_swap_out", (6, 7), -1)

    def __init__(self, discriminator: str, anchor_name: str, key_slots: Tuple[int, ...], wsol_sign: int):
        self.discriminator = discriminator
        self.anchor_name = anchor_name
        self.key_slots = key_slots
        self.wsol_sign = wsol_sign

    @property
    def display_name(self) -> str:
        # CreateSandwichV2 / AutoSwapIn / AutoSwapOut
        return "".join(part.capitalize() for part in self.anchor_name.split("_"))

    @property
    def tracks_counter_leg(self) -> bool:
        return self.wsol_sign != 0

    def resolve_correlation_key(self, instruction_accounts, account_keys) -> str:
        """
        Возвращает sandwich-аккаунт: первый слот из схемы, который есть в инструкции
        и указывает на существующий ключ. Короткий список аккаунтов даёт пустую строку.
        """
        for slot in self.key_slots:
            if slot < len(instruction_accounts):
                account_idx = instruction_accounts[slot]
                if account_idx < len(account_keys):
                    return account_keys[account_idx]
        return ""


INSTRUCTION_TABLE: Dict[str, InstructionKind] = {kind.discriminator: kind for kind in InstructionKind}


def lookup_instruction(data: bytes) -> Optional[InstructionKind]:
    """Классифицирует данные инструкции по дискриминатору; короткие и неизвестные дают None."""
    if len(data) < DISCRIMINATOR_LENGTH:
        return None
    return INSTRUCTION_TABLE.get(data[:DISCRIMINATOR_LENGTH].hex())
