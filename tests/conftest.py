import base58
import pytest

from config.constants import SANDWICH_PROGRAM_ID
from decoder.schemas import EncodedTransactionWithMeta
from detection.instructions import InstructionKind
from detection.models import ClassifiedTransaction

ATTACKER = "Attacker1111111111111111111111111111111111"
VICTIM = "Victim11111111111111111111111111111111111"
POOL_AUTHORITY = "PoolAuthority11111111111111111111111111111"
SANDWICH_ACC = "SandwichAcc1111111111111111111111111111111"
TOKEN_MINT = "TokenMint11111111111111111111111111111111"


@pytest.fixture
def ix_data():
    def _data(kind: InstructionKind, payload: bytes = b"\x01" * 16) -> bytes:
        return bytes.fromhex(kind.discriminator) + payload
    return _data


@pytest.fixture
def token_balance():
    def _balance(account_index, mint, owner, amount, decimals=6):
        return {
            "accountIndex": account_index,
            "mint": mint,
            "owner": owner,
            "uiTokenAmount": {"amount": str(amount), "decimals": decimals},
        }
    return _balance


@pytest.fixture
def make_tx():
    """Транзакция в json-кодировке RPC; instructions = [(program_id_index, accounts, data_bytes), ...]."""
    def _make(
        account_keys,
        instructions,
        pre_balances=None,
        post_balances=None,
        pre_token_balances=None,
        post_token_balances=None,
        signatures=("sig1",),
        num_required_signatures=1,
        logs=None,
        err=None,
        loaded_addresses=None,
        version="legacy",
    ):
        n = len(account_keys) + len((loaded_addresses or {}).get("writable", [])) + len((loaded_addresses or {}).get("readonly", []))
        meta = {
            "err": err,
            "fee": 5000,
            "preBalances": pre_balances if pre_balances is not None else [0] * n,
            "postBalances": post_balances if post_balances is not None else [0] * n,
            "preTokenBalances": pre_token_balances or [],
            "postTokenBalances": post_token_balances or [],
            "logMessages": logs if logs is not None else [f"Program {SANDWICH_PROGRAM_ID} invoke [1]"],
        }
        if loaded_addresses is not None:
            meta["loadedAddresses"] = loaded_addresses
        raw = {
            "transaction": {
                "signatures": list(signatures),
                "message": {
                    "header": {
                        "numRequiredSignatures": num_required_signatures,
                        "numReadonlySignedAccounts": 0,
                        "numReadonlyUnsignedAccounts": 1,
                    },
                    "accountKeys": list(account_keys),
                    "recentBlockhash": "11111111111111111111111111111111",
                    "instructions": [
                        {
                            "programIdIndex": program_idx,
                            "accounts": list(accounts),
                            "data": base58.b58encode(data).decode(),
                        }
                        for program_idx, accounts, data in instructions
                    ],
                },
            },
            "meta": meta,
            "version": version,
        }
        return EncodedTransactionWithMeta.model_validate(raw)
    return _make


@pytest.fixture
def make_classified():
    def _make(
        kind: InstructionKind,
        key: str = SANDWICH_ACC,
        block_time=10,
        block_height: int = 100,
        signature: str = "sig",
        signer: str = ATTACKER,
        swapper: str = "",
        mint: str = "",
        from_amount: int = 0,
        to_amount: int = 0,
        to_mint=None,
        counter_leg_change=None,
        tip_amount: int = 0,
        decimals: int = 9,
    ) -> ClassifiedTransaction:
        return ClassifiedTransaction(
            signature=signature,
            signer=signer,
            block_height=block_height,
            block_time=block_time,
            instruction_type=kind,
            correlation_key=key,
            swapper=swapper,
            from_mint=mint,
            to_mint=mint if to_mint is None else to_mint,
            from_amount=from_amount,
            to_amount=to_amount,
            decimals=decimals,
            tip_amount=tip_amount,
            counter_leg_change=counter_leg_change,
        )
    return _make
