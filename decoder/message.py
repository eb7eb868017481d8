"""
Декодер транзакций Solana.

Поддерживает оба формата, в которых RPC отдаёт транзакции блока:
  - "base64"/"base58": сырые wire-байты (legacy и версионированные v0 сообщения);
  - "json": уже разобранное сообщение с base58-данными инструкций.

Оба варианта приводятся к одной форме DecodedTransaction (account_keys + instructions).
"""
import base64
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union, Dict, Any

import base58

from decoder.schemas import TransactionMeta
from processing.errors import TransactionDecodeError

logger = logging.getLogger("decoder.message")

SIGNATURE_LENGTH = 64
PUBKEY_LENGTH = 32
VERSION_PREFIX_MASK = 0x80
SUPPORTED_VERSIONS = {0}

@dataclass(frozen=True)
class MessageHeader:
    num_required_signatures: int
    num_readonly_signed_accounts: int
    num_readonly_unsigned_accounts: int

@dataclass(frozen=True)
class CompiledInstruction:
    program_id_index: int
    accounts: Tuple[int, ...]
    data: bytes

@dataclass(frozen=True)
class AddressTableLookup:
    account_key: str
    writable_indexes: Tuple[int, ...]
    readonly_indexes: Tuple[int, ...]

@dataclass(frozen=True)
class DecodedTransaction:
    signatures: List[str]
    header: MessageHeader
    account_keys: List[str]
    recent_blockhash: str
    instructions: List[CompiledInstruction]
    address_table_lookups: List[AddressTableLookup] = field(default_factory=list)
    version: Optional[int] = None  # None == legacy

    @property
    def signature(self) -> str:
        return self.signatures[0] if self.signatures else ""

    @property
    def signer(self) -> str:
        """Первый ключ считается подписантом только если сообщение объявляет хотя бы одну подпись."""
        num_signers = self.header.num_required_signatures
        if num_signers > 0 and len(self.account_keys) >= num_signers:
            return self.account_keys[0]
        return ""


class _WireReader:
    def __init__(self, raw: bytes):
        self.raw = raw
        self.offset = 0

    def read_bytes(self, n: int) -> bytes:
        end = self.offset + n
        if end > len(self.raw):
            raise TransactionDecodeError(
                f"Неожиданный конец данных: нужно {n} байт на смещении {self.offset}, всего {len(self.raw)}"
            )
        chunk = self.raw[self.offset:end]
        self.offset = end
        return chunk

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def peek_u8(self) -> int:
        if self.offset >= len(self.raw):
            raise TransactionDecodeError("Неожиданный конец данных при чтении префикса версии")
        return self.raw[self.offset]

    def read_compact_u16(self) -> int:
        # shortvec: до 3 байт, по 7 бит значения в каждом, старший бит = "продолжение"
        value = 0
        for i in range(3):
            byte = self.read_u8()
            value |= (byte & 0x7F) << (7 * i)
            if not byte & 0x80:
                if value > 0xFFFF:
                    raise TransactionDecodeError(f"compact-u16 вне диапазона: {value}")
                return value
        raise TransactionDecodeError("compact-u16 длиннее 3 байт")

    def read_pubkey(self) -> str:
        return base58.b58encode(self.read_bytes(PUBKEY_LENGTH)).decode()

    def read_index_list(self) -> Tuple[int, ...]:
        length = self.read_compact_u16()
        return tuple(self.read_bytes(length))


def decode_wire_transaction(raw: bytes) -> DecodedTransaction:
    """Разбирает сериализованную транзакцию (подписи + legacy/v0 сообщение)."""
    reader = _WireReader(raw)

    num_signatures = reader.read_compact_u16()
    signatures = [
        base58.b58encode(reader.read_bytes(SIGNATURE_LENGTH)).decode()
        for _ in range(num_signatures)
    ]

    version: Optional[int] = None
    if reader.peek_u8() & VERSION_PREFIX_MASK:
        version = reader.read_u8() & 0x7F
        if version not in SUPPORTED_VERSIONS:
            raise TransactionDecodeError(f"Неподдерживаемая версия сообщения: {version}")

    header = MessageHeader(reader.read_u8(), reader.read_u8(), reader.read_u8())

    num_keys = reader.read_compact_u16()
    account_keys = [reader.read_pubkey() for _ in range(num_keys)]
    recent_blockhash = reader.read_pubkey()

    instructions = []
    for _ in range(reader.read_compact_u16()):
        program_id_index = reader.read_u8()
        accounts = reader.read_index_list()
        data_len = reader.read_compact_u16()
        data = reader.read_bytes(data_len)
        instructions.append(CompiledInstruction(program_id_index, accounts, data))

    lookups = []
    if version is not None:
        for _ in range(reader.read_compact_u16()):
            account_key = reader.read_pubkey()
            writable = reader.read_index_list()
            readonly = reader.read_index_list()
            lookups.append(AddressTableLookup(account_key, writable, readonly))

    return DecodedTransaction(
        signatures=signatures,
        header=header,
        account_keys=account_keys,
        recent_blockhash=recent_blockhash,
        instructions=instructions,
        address_table_lookups=lookups,
        version=version,
    )


def _parse_version(version: Union[int, str, None]) -> Optional[int]:
    if version is None or version == "legacy":
        return None
    try:
        return int(version)
    except (TypeError, ValueError):
        raise TransactionDecodeError(f"Некорректная версия транзакции: {version!r}")


def decode_json_transaction(tx: Dict[str, Any], version: Union[int, str, None] = None) -> DecodedTransaction:
    """Приводит транзакцию в json-кодировке RPC к DecodedTransaction."""
    try:
        message = tx["message"]
        raw_header = message["header"]
        header = MessageHeader(
            raw_header["numRequiredSignatures"],
            raw_header["numReadonlySignedAccounts"],
            raw_header["numReadonlyUnsignedAccounts"],
        )
        # jsonParsed отдаёт ключи объектами {"pubkey": ...}
        account_keys = [k["pubkey"] if isinstance(k, dict) else k for k in message["accountKeys"]]
        instructions = [
            CompiledInstruction(
                program_id_index=ix["programIdIndex"],
                accounts=tuple(ix.get("accounts", [])),
                data=base58.b58decode(ix.get("data", "")),
            )
            for ix in message["instructions"]
        ]
        lookups = [
            AddressTableLookup(
                account_key=lookup["accountKey"],
                writable_indexes=tuple(lookup.get("writableIndexes", [])),
                readonly_indexes=tuple(lookup.get("readonlyIndexes", [])),
            )
            for lookup in message.get("addressTableLookups") or []
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise TransactionDecodeError(f"Некорректная json-транзакция: {e}") from e

    return DecodedTransaction(
        signatures=list(tx.get("signatures", [])),
        header=header,
        account_keys=account_keys,
        recent_blockhash=message.get("recentBlockhash", ""),
        instructions=instructions,
        address_table_lookups=lookups,
        version=_parse_version(version),
    )


def decode_transaction(encoded: Union[List[str], Dict[str, Any]], version: Union[int, str, None] = None) -> DecodedTransaction:
    """Точка входа: определяет кодировку и декодирует транзакцию."""
    if isinstance(encoded, dict):
        return decode_json_transaction(encoded, version)

    if not isinstance(encoded, (list, tuple)) or len(encoded) != 2:
        raise TransactionDecodeError(f"Неизвестный формат транзакции: {type(encoded).__name__}")

    payload, encoding = encoded
    try:
        if encoding == "base64":
            raw = base64.b64decode(payload, validate=True)
        elif encoding == "base58":
            raw = base58.b58decode(payload)
        else:
            raise TransactionDecodeError(f"Неподдерживаемая кодировка: {encoding}")
    except ValueError as e:
        raise TransactionDecodeError(f"Не удалось декодировать {encoding}: {e}") from e

    return decode_wire_transaction(raw)


def resolve_account_keys(decoded: DecodedTransaction, meta: Optional[TransactionMeta]) -> List[str]:
    """
    Полный список аккаунтов транзакции: статические ключи сообщения,
    затем адреса из lookup-таблиц (сначала writable, потом readonly), как их индексирует рантайм.
    """
    keys = list(decoded.account_keys)
    if meta is not None and meta.loadedAddresses is not None:
        keys.extend(meta.loadedAddresses.writable)
        keys.extend(meta.loadedAddresses.readonly)
    return keys
