import base64

import base58
import pytest

from decoder.message import decode_transaction, decode_wire_transaction, resolve_account_keys
from decoder.schemas import TransactionMeta
from processing.errors import TransactionDecodeError


def _compact_u16(n):
    out = bytearray()
    while True:
        byte = n & 0x7F
        n >>= 7
        if n:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _key(i):
    return bytes([i]) * 32


def _b58(raw):
    return base58.b58encode(raw).decode()


def _encode_tx(signatures, header, keys, instructions, version=None, lookups=()):
    out = _compact_u16(len(signatures)) + b"".join(signatures)
    if version is not None:
        out += bytes([0x80 | version])
    out += bytes(header)
    out += _compact_u16(len(keys)) + b"".join(keys)
    out += b"\x07" * 32  # recent blockhash
    out += _compact_u16(len(instructions))
    for program_idx, accounts, data in instructions:
        out += bytes([program_idx]) + _compact_u16(len(accounts)) + bytes(accounts)
        out += _compact_u16(len(data)) + data
    if version is not None:
        out += _compact_u16(len(lookups))
        for key, writable, readonly in lookups:
            out += key + _compact_u16(len(writable)) + bytes(writable) + _compact_u16(len(readonly)) + bytes(readonly)
    return out


def test_decode_legacy_wire_transaction():
    raw = _encode_tx(
        signatures=[b"\x00" * 64],
        header=(1, 0, 1),
        keys=[_key(0), _key(1), _key(2)],
        instructions=[(2, [0, 1], b"\xaa\xbb\xcc")],
    )
    tx = decode_wire_transaction(raw)

    assert tx.version is None
    assert tx.signature == "1" * 64
    assert tx.account_keys == ["1" * 32, _b58(_key(1)), _b58(_key(2))]
    assert tx.signer == "1" * 32
    assert tx.header.num_required_signatures == 1
    assert len(tx.instructions) == 1
    ix = tx.instructions[0]
    assert ix.program_id_index == 2
    assert ix.accounts == (0, 1)
    assert ix.data == b"\xaa\xbb\xcc"
    assert tx.address_table_lookups == []


def test_decode_v0_wire_transaction_with_lookups():
    raw = _encode_tx(
        signatures=[b"\x01" * 64],
        header=(1, 0, 0),
        keys=[_key(3), _key(4)],
        instructions=[(1, [0, 2, 3], b"\x01" * 8)],
        version=0,
        lookups=[(_key(9), [5, 6], [7])],
    )
    tx = decode_wire_transaction(raw)

    assert tx.version == 0
    assert tx.instructions[0].accounts == (0, 2, 3)
    assert len(tx.address_table_lookups) == 1
    lookup = tx.address_table_lookups[0]
    assert lookup.account_key == _b58(_key(9))
    assert lookup.writable_indexes == (5, 6)
    assert lookup.readonly_indexes == (7,)


def test_decode_multibyte_compact_lengths():
    data = bytes(range(200))  # длина 200 кодируется двумя байтами shortvec
    raw = _encode_tx([b"\x02" * 64], (1, 0, 0), [_key(5), _key(6)], [(1, [0], data)])
    tx = decode_wire_transaction(raw)
    assert tx.instructions[0].data == data


def test_truncated_transaction_raises():
    raw = _encode_tx([b"\x00" * 64], (1, 0, 0), [_key(0), _key(1)], [(1, [0], b"\x01" * 8)])
    with pytest.raises(TransactionDecodeError):
        decode_wire_transaction(raw[:-3])


def test_unsupported_version_raises():
    raw = _encode_tx([b"\x00" * 64], (1, 0, 0), [_key(0)], [], version=1)
    with pytest.raises(TransactionDecodeError):
        decode_wire_transaction(raw)


def test_decode_transaction_base64_envelope():
    raw = _encode_tx([b"\x00" * 64], (1, 0, 0), [_key(0), _key(1)], [(1, [0], b"\x01" * 8)])
    tx = decode_transaction([base64.b64encode(raw).decode(), "base64"])
    assert tx.account_keys[1] == _b58(_key(1))


def test_decode_transaction_rejects_unknown_encoding():
    with pytest.raises(TransactionDecodeError):
        decode_transaction(["abc", "zstd"])
    with pytest.raises(TransactionDecodeError):
        decode_transaction(["not base64 !!", "base64"])


def test_decode_json_transaction_with_parsed_keys():
    encoded = {
        "signatures": ["sigA", "sigB"],
        "message": {
            "header": {"numRequiredSignatures": 1, "numReadonlySignedAccounts": 0, "numReadonlyUnsignedAccounts": 1},
            "accountKeys": [{"pubkey": "Payer", "signer": True}, {"pubkey": "Program", "signer": False}],
            "recentBlockhash": "hash",
            "instructions": [{"programIdIndex": 1, "accounts": [0], "data": _b58(b"\x05\x06")}],
        },
    }
    tx = decode_transaction(encoded, version=0)
    assert tx.version == 0
    assert tx.signature == "sigA"
    assert tx.account_keys == ["Payer", "Program"]
    assert tx.instructions[0].data == b"\x05\x06"


def test_decode_json_transaction_missing_message_raises():
    with pytest.raises(TransactionDecodeError):
        decode_transaction({"signatures": ["x"]})


def test_signer_requires_declared_signature():
    encoded = {
        "signatures": [],
        "message": {
            "header": {"numRequiredSignatures": 0, "numReadonlySignedAccounts": 0, "numReadonlyUnsignedAccounts": 0},
            "accountKeys": ["Payer"],
            "instructions": [],
        },
    }
    tx = decode_transaction(encoded)
    assert tx.signature == ""
    assert tx.signer == ""


def test_resolve_account_keys_appends_loaded_addresses():
    encoded = {
        "signatures": ["s"],
        "message": {
            "header": {"numRequiredSignatures": 1, "numReadonlySignedAccounts": 0, "numReadonlyUnsignedAccounts": 0},
            "accountKeys": ["A", "B"],
            "instructions": [],
        },
    }
    tx = decode_transaction(encoded, version=0)
    meta = TransactionMeta.model_validate({"loadedAddresses": {"writable": ["W1"], "readonly": ["R1", "R2"]}})
    assert resolve_account_keys(tx, meta) == ["A", "B", "W1", "R1", "R2"]
    assert resolve_account_keys(tx, None) == ["A", "B"]
