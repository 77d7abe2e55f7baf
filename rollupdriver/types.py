"""Block header types, the conversions between them, and hashing helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Union

from Crypto.Hash import keccak

HASH_LENGTH = 32
ADDRESS_LENGTH = 20
BLOOM_LENGTH = 256
BLOOM_CHUNKS = 8
BLOOM_CHUNK_LENGTH = BLOOM_LENGTH // BLOOM_CHUNKS

ZERO_HASH = bytes(HASH_LENGTH)
ZERO_ADDRESS = bytes(ADDRESS_LENGTH)
EMPTY_BLOOM = bytes(BLOOM_LENGTH)

# keccak256(rlp([])) and keccak256(rlp(b"")).
EMPTY_UNCLE_HASH = bytes.fromhex("1dcc4de8dec75d7aab85b567b6ccd41ad312451b948a7413f0a142fd40d49347")
EMPTY_ROOT_HASH = bytes.fromhex("56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421")

# Account that signs every L2 anchor transaction; fixed and public in the protocol.
GOLDEN_TOUCH_ADDRESS = bytes.fromhex("0000777735367b36bc9b61c50022d9d0700db4ec")
GOLDEN_TOUCH_PRIV_KEY = "0x92954368afd3caa1f3ce3ead0069c1af414054aefe1ef9aeacc1bf426222ce38"

RlpItem = Union[bytes, bytearray, memoryview, int, Sequence["RlpItem"]]


def keccak256(data: bytes) -> bytes:
    """Return the Keccak-256 digest of ``data``."""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


def _length_prefix(length: int, offset: int) -> bytes:
    if length < 56:
        return bytes([offset + length])
    encoded = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([offset + 55 + len(encoded)]) + encoded


def rlp_encode(item: RlpItem) -> bytes:
    """RLP-encode byte strings, non-negative integers and nested lists of them."""
    if isinstance(item, bool):
        raise TypeError("booleans cannot be RLP encoded")
    if isinstance(item, int):
        if item < 0:
            raise ValueError("negative integers cannot be RLP encoded")
        item = item.to_bytes((item.bit_length() + 7) // 8, "big")
    if isinstance(item, (bytes, bytearray, memoryview)):
        data = bytes(item)
        if len(data) == 1 and data[0] < 0x80:
            return data
        return _length_prefix(len(data), 0x80) + data
    if isinstance(item, (list, tuple)):
        payload = b"".join(rlp_encode(element) for element in item)
        return _length_prefix(len(payload), 0xC0) + payload
    raise TypeError(f"cannot RLP encode value of type {type(item).__name__}")


@dataclass
class Header:
    """An execution layer block header."""

    parent_hash: bytes = ZERO_HASH
    uncle_hash: bytes = ZERO_HASH
    coinbase: bytes = ZERO_ADDRESS
    root: bytes = ZERO_HASH
    tx_hash: bytes = ZERO_HASH
    receipt_hash: bytes = ZERO_HASH
    bloom: bytes = EMPTY_BLOOM
    difficulty: int = 0
    number: int = 0
    gas_limit: int = 0
    gas_used: int = 0
    time: int = 0
    extra: bytes = b""
    mix_digest: bytes = ZERO_HASH
    nonce: int = 0
    base_fee: int | None = None

    def hash(self) -> bytes:
        """Return the keccak256 hash of the RLP-encoded header."""
        fields: list[RlpItem] = [
            self.parent_hash, self.uncle_hash, self.coinbase, self.root,
            self.tx_hash, self.receipt_hash, self.bloom, self.difficulty,
            self.number, self.gas_limit, self.gas_used, self.time, self.extra,
            self.mix_digest, self.nonce.to_bytes(8, "big"),
        ]
        if self.base_fee is not None:
            fields.append(self.base_fee)
        return keccak256(rlp_encode(fields))


@dataclass
class BlockHeader:
    """The block header layout used by the protocol contracts."""

    parent_hash: bytes
    ommers_hash: bytes
    beneficiary: bytes
    state_root: bytes
    transactions_root: bytes
    receipts_root: bytes
    logs_bloom: tuple[bytes, ...]
    difficulty: int
    height: int
    gas_limit: int
    gas_used: int
    timestamp: int
    extra_data: bytes
    mix_hash: bytes
    nonce: int
    base_fee_per_gas: int


@dataclass
class ExecutableDataV1:
    """Engine API execution payload."""

    parent_hash: bytes
    fee_recipient: bytes
    state_root: bytes
    receipts_root: bytes
    logs_bloom: bytes
    random: bytes
    number: int
    gas_limit: int
    gas_used: int
    timestamp: int
    extra_data: bytes
    base_fee_per_gas: int | None
    block_hash: bytes
    tx_hash: bytes
    transactions: list[bytes] = field(default_factory=list)


def bloom_to_bytes(bloom: bytes) -> tuple[bytes, ...]:
    """Split a 256-byte bloom filter into eight 32-byte words."""
    if len(bloom) != BLOOM_LENGTH:
        raise ValueError(f"bloom must be {BLOOM_LENGTH} bytes, got {len(bloom)}")
    data = bytes(bloom)
    return tuple(data[i:i + BLOOM_CHUNK_LENGTH] for i in range(0, BLOOM_LENGTH, BLOOM_CHUNK_LENGTH))


def bytes_to_bloom(chunks: Sequence[bytes]) -> bytes:
    """Join eight 32-byte words back into a 256-byte bloom filter."""
    if len(chunks) != BLOOM_CHUNKS or any(len(c) != BLOOM_CHUNK_LENGTH for c in chunks):
        raise ValueError(f"expected {BLOOM_CHUNKS} bloom words of {BLOOM_CHUNK_LENGTH} bytes")
    return b"".join(bytes(chunk) for chunk in chunks)


def from_geth_header(header: Header) -> BlockHeader:
    """Convert an execution layer header to the protocol's header layout."""
    return BlockHeader(
        parent_hash=header.parent_hash,
        ommers_hash=header.uncle_hash,
        beneficiary=header.coinbase,
        state_root=header.root,
        transactions_root=header.tx_hash,
        receipts_root=header.receipt_hash,
        logs_bloom=bloom_to_bytes(header.bloom),
        difficulty=header.difficulty,
        height=header.number,
        gas_limit=header.gas_limit,
        gas_used=header.gas_used,
        timestamp=header.time,
        extra_data=header.extra,
        mix_hash=header.mix_digest,
        nonce=header.nonce,
        base_fee_per_gas=0 if header.base_fee is None else header.base_fee,
    )


def to_geth_header(header: BlockHeader) -> Header:
    """Convert a protocol header back; a zero base fee becomes ``None``."""
    return Header(
        parent_hash=header.parent_hash,
        uncle_hash=header.ommers_hash,
        coinbase=header.beneficiary,
        root=header.state_root,
        tx_hash=header.transactions_root,
        receipt_hash=header.receipts_root,
        bloom=bytes_to_bloom(header.logs_bloom),
        difficulty=header.difficulty,
        number=header.height,
        gas_limit=header.gas_limit,
        gas_used=header.gas_used,
        time=header.timestamp,
        extra=header.extra_data,
        mix_digest=header.mix_hash,
        nonce=header.nonce,
        base_fee=None if header.base_fee_per_gas == 0 else header.base_fee_per_gas,
    )


def to_executable_data_v1(header: Header) -> ExecutableDataV1:
    """Build an Engine API payload describing the given header."""
    return ExecutableDataV1(
        parent_hash=header.parent_hash,
        fee_recipient=header.coinbase,
        state_root=header.root,
        receipts_root=header.receipt_hash,
        logs_bloom=bytes(header.bloom),
        random=header.mix_digest,
        number=header.number,
        gas_limit=header.gas_limit,
        gas_used=header.gas_used,
        timestamp=header.time,
        extra_data=header.extra,
        base_fee_per_gas=header.base_fee,
        block_hash=header.hash(),
        tx_hash=header.tx_hash,
    )