"""
Модели детектора: классифицированная транзакция, результат разбора свопа и паттерн атаки.
"""
from dataclasses import dataclass, replace, asdict
from datetime import datetime, timezone
from typing import Optional, Tuple, Dict, Any

from config.constants import BASE_FEE_LAMPORTS, DEFAULT_DECIMALS, LAMPORTS_PER_SOL
from config.token_registry import get_token_symbol
from detection.instructions import InstructionKind


@dataclass(frozen=True)
class SwapInfo:
    """Промежуточный результат разбора свопа, сразу переносится в ClassifiedTransaction."""
    swapper: str
    from_mint: str
    to_mint: str
    from_amount: int
    to_amount: int
    counter_leg_change: Optional[float] = None
    decimals: int = DEFAULT_DECIMALS


@dataclass(frozen=True)
class ClassifiedTransaction:
    """Один вызов сэндвич-программы внутри одной транзакции."""
    signature: str
    signer: str
    block_height: int
    block_time: Optional[int]
    instruction_type: InstructionKind
    correlation_key: str
    swapper: str = ""
    from_mint: str = ""
    to_mint: str = ""
    from_amount: int = 0
    to_amount: int = 0
    decimals: int = DEFAULT_DECIMALS
    tip_amount: int = 0
    counter_leg_change: Optional[float] = None  # wSOL, в SOL
    native_balance_change: int = 0  # lamports подписанта

    @classmethod
    def from_swap(cls, swap: Optional[SwapInfo], **fields) -> "ClassifiedTransaction":
        if swap is None:
            return cls(**fields)
        return cls(
            swapper=swap.swapper,
            from_mint=swap.from_mint,
            to_mint=swap.to_mint,
            from_amount=swap.from_amount,
            to_amount=swap.to_amount,
            counter_leg_change=swap.counter_leg_change,
            decimals=swap.decimals,
            **fields,
        )

    @property
    def has_swap(self) -> bool:
        return bool(self.from_mint)

    def with_decimals(self, decimals: int) -> "ClassifiedTransaction":
        return replace(self, decimals=decimals)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["instruction_type"] = self.instruction_type.display_name
        return data


def _format_block_time(block_time: Optional[int]) -> str:
    if block_time is None:
        return "unknown"
    return datetime.fromtimestamp(block_time, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _legs_ordered(*times: Optional[int]) -> bool:
    # Неизвестное время не сравнивается; проверяются только соседние известные значения
    known = [t for t in times if t is not None]
    return all(a <= b for a, b in zip(known, known[1:]))


@dataclass(frozen=True)
class Pattern:
    """Завершённый сэндвич: create -> swap in -> swap out с общим sandwich-аккаунтом."""
    token: str
    attacker: str
    victim: Optional[str]
    legs: Tuple[ClassifiedTransaction, ClassifiedTransaction, ClassifiedTransaction]

    @property
    def create(self) -> ClassifiedTransaction:
        return self.legs[0]

    @property
    def swap_in(self) -> ClassifiedTransaction:
        return self.legs[1]

    @property
    def swap_out(self) -> ClassifiedTransaction:
        return self.legs[2]

    @property
    def block_height(self) -> int:
        return self.create.block_height

    @classmethod
    def construct(
        cls,
        create: ClassifiedTransaction,
        swap_in: ClassifiedTransaction,
        swap_out: ClassifiedTransaction,
    ) -> Optional["Pattern"]:
        """Собирает паттерн или возвращает None, если тройка нарушает инварианты."""
        legs = (create, swap_in, swap_out)
        if not _legs_consistent(legs):
            return None
        if not _legs_ordered(create.block_time, swap_in.block_time, swap_out.block_time):
            return None

        token = swap_in.from_mint or swap_out.from_mint
        if not token:
            return None

        return cls(
            token=token,
            attacker=create.signer,
            victim=swap_in.swapper or None,
            legs=legs,
        )

    def is_valid(self) -> bool:
        return _legs_consistent(self.legs)

    def token_profit(self) -> int:
        if not self.is_valid():
            return 0
        return self.swap_out.from_amount - self.swap_in.from_amount

    def sol_profit(self) -> float:
        received = abs(self.swap_out.counter_leg_change or 0.0)
        spent = abs(self.swap_in.counter_leg_change or 0.0)
        tip = self.swap_out.tip_amount / LAMPORTS_PER_SOL
        fees = 2 * BASE_FEE_LAMPORTS / LAMPORTS_PER_SOL
        return received - spent - tip - fees

    def is_profitable(self) -> bool:
        in_amount = self.swap_in.from_amount
        out_amount = self.swap_out.from_amount
        return in_amount != 0 and out_amount != 0 and out_amount > in_amount

    def summary(self) -> str:
        decimals = self.swap_in.decimals
        token_profit_ui = self.token_profit() / (10 ** decimals)
        symbol = get_token_symbol(self.token)
        lines = [
            "Sandwich Pattern Detected:",
            f"Token: {self.token}" + (f" ({symbol})" if symbol else ""),
            f"Token Profit: {token_profit_ui:.{decimals}f} (decimals: {decimals})",
            f"SOL Profit: {self.sol_profit():.9f} SOL",
            f"Attacker: {self.attacker or 'unknown'}",
            f"Victim: {self.victim or 'unknown'}",
            f"Block Height: {self.block_height}",
            f"Time: {_format_block_time(self.create.block_time)}",
            "Transactions:",
            f"  Create: {self.create.signature}",
            f"  Swap In: {self.swap_in.signature}",
            f"  Swap Out: {self.swap_out.signature}",
        ]
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "attacker": self.attacker,
            "victim": self.victim,
            "block_height": self.block_height,
            "token_profit": self.token_profit(),
            "sol_profit": self.sol_profit(),
            "is_profitable": self.is_profitable(),
            "legs": [leg.to_dict() for leg in self.legs],
        }


def _legs_consistent(legs) -> bool:
    create, swap_in, swap_out = legs
    key = create.correlation_key
    if not key or swap_in.correlation_key != key or swap_out.correlation_key != key:
        return False
    if not (create.block_height == swap_in.block_height == swap_out.block_height):
        return False
    return swap_in.from_mint == swap_in.to_mint and swap_out.from_mint == swap_out.to_mint
