from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any, Union

# Модели повторяют JSON-ответ Solana RPC (getBlock / getTransaction), поэтому поля в camelCase.
# Pydantic отвечает за валидацию входа, дальше по пайплайну идут уже типизированные объекты.

class UiTokenAmount(BaseModel):
    amount: str
    decimals: int = 0
    uiAmount: Optional[float] = None
    uiAmountString: Optional[str] = None

class TokenBalance(BaseModel):
    accountIndex: int
    mint: str
    owner: Optional[str] = None
    programId: Optional[str] = None
    uiTokenAmount: UiTokenAmount

    @property
    def raw_amount(self) -> int:
        """Сырое количество в минимальных единицах; нечитаемая строка считается нулём."""
        try:
            return int(self.uiTokenAmount.amount)
        except (TypeError, ValueError):
            return 0

class LoadedAddresses(BaseModel):
    writable: List[str] = Field(default_factory=list)
    readonly: List[str] = Field(default_factory=list)

class TransactionMeta(BaseModel):
    err: Optional[Any] = None
    fee: int = 0
    preBalances: List[int] = Field(default_factory=list)
    postBalances: List[int] = Field(default_factory=list)
    preTokenBalances: Optional[List[TokenBalance]] = None
    postTokenBalances: Optional[List[TokenBalance]] = None
    logMessages: Optional[List[str]] = None
    loadedAddresses: Optional[LoadedAddresses] = None
    computeUnitsConsumed: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.err is None

class EncodedTransactionWithMeta(BaseModel):
    # base64/base58: ["<payload>", "base64"]; json: {"signatures": [...], "message": {...}}
    transaction: Union[List[str], Dict[str, Any]]
    meta: Optional[TransactionMeta] = None
    version: Optional[Union[int, str]] = None

class Block(BaseModel):
    blockHeight: Optional[int] = None
    blockTime: Optional[int] = None
    blockhash: Optional[str] = None
    parentSlot: Optional[int] = None
    transactions: Optional[List[EncodedTransactionWithMeta]] = None
