"""ABI encoding of the protocol's block metadata and proof evidence."""

from __future__ import annotations

from dataclasses import dataclass, field

from . import abi
from .types import ZERO_ADDRESS, ZERO_HASH, BlockHeader, keccak256

BLOCK_METADATA_TYPE = (
    "(uint256,uint256,bytes32,address,bytes32,bytes32,bytes,uint64,uint64,uint64,uint64)"
)
BLOCK_HEADER_TYPE = (
    "(bytes32,bytes32,address,bytes32,bytes32,bytes32,bytes32[8],uint256,uint128,"
    "uint64,uint64,uint64,bytes,bytes32,uint64,uint256)"
)
EVIDENCE_TYPE = f"({BLOCK_METADATA_TYPE},{BLOCK_HEADER_TYPE},address,bytes[],uint16)"


class EncodingError(ValueError):
    """Raised when protocol data cannot be encoded or decoded."""


@dataclass
class BlockMetadata:
    """Metadata of a proposed L2 block, as recorded by the protocol."""

    id: int = 0
    l1_height: int = 0
    l1_hash: bytes = ZERO_HASH
    beneficiary: bytes = ZERO_ADDRESS
    tx_list_hash: bytes = ZERO_HASH
    mix_hash: bytes = ZERO_HASH
    extra_data: bytes = b""
    gas_limit: int = 0
    timestamp: int = 0
    commit_height: int = 0
    commit_slot: int = 0


@dataclass
class TaikoL1Evidence:
    """Evidence submitted to the protocol when proving a block."""

    meta: BlockMetadata
    header: BlockHeader
    prover: bytes = ZERO_ADDRESS
    proofs: list[bytes] = field(default_factory=list)
    circuits: int = 0


def _meta_values(meta: BlockMetadata) -> tuple:
    return (
        meta.id,
        meta.l1_height,
        meta.l1_hash,
        meta.beneficiary,
        meta.tx_list_hash,
        meta.mix_hash,
        meta.extra_data,
        meta.gas_limit,
        meta.timestamp,
        meta.commit_height,
        meta.commit_slot,
    )


def _header_values(header: BlockHeader) -> tuple:
    return (
        header.parent_hash,
        header.ommers_hash,
        header.beneficiary,
        header.state_root,
        header.transactions_root,
        header.receipts_root,
        tuple(header.logs_bloom),
        header.difficulty,
        header.height,
        header.gas_limit,
        header.gas_used,
        header.timestamp,
        header.extra_data,
        header.mix_hash,
        header.nonce,
        header.base_fee_per_gas,
    )


def encode_block_metadata(meta: BlockMetadata) -> bytes:
    """Return ``abi.encode(meta)`` for the given block metadata."""
    try:
        return abi.encode([BLOCK_METADATA_TYPE], [_meta_values(meta)])
    except abi.AbiError as exc:
        raise EncodingError(f"failed to abi.encode block metadata, {exc}") from exc


def encode_evidence(evidence: TaikoL1Evidence) -> bytes:
    """Return ``abi.encode(evidence)`` for the given proof evidence."""
    values = (
        _meta_values(evidence.meta),
        _header_values(evidence.header),
        evidence.prover,
        list(evidence.proofs),
        evidence.circuits,
    )
    try:
        return abi.encode([EVIDENCE_TYPE], [values])
    except abi.AbiError as exc:
        raise EncodingError(f"failed to abi.encode evidence, {exc}") from exc


def encode_commit_hash(beneficiary: bytes, tx_list_hash: bytes) -> bytes:
    """Return ``keccak256(abi.encodePacked(beneficiary, txListHash))``."""
    if len(beneficiary) != 20:
        raise EncodingError(f"beneficiary must be 20 bytes, got {len(beneficiary)}")
    if len(tx_list_hash) != 32:
        raise EncodingError(f"txList hash must be 32 bytes, got {len(tx_list_hash)}")
    return keccak256(bytes(beneficiary) + bytes(tx_list_hash))


def encode_propose_block_input(meta: BlockMetadata, tx_list_bytes: bytes) -> list[bytes]:
    """Build the ``inputs`` argument of ``TaikoL1.proposeBlock``."""
    return [encode_block_metadata(meta), bytes(tx_list_bytes)]


def decode_evidence_header(evidence_bytes: bytes) -> BlockHeader:
    """Decode ABI-encoded evidence and return the block header inside it."""
    try:
        (evidence,) = abi.decode([EVIDENCE_TYPE], evidence_bytes)
    except abi.AbiError as exc:
        raise EncodingError("failed to decode evidence meta") from exc
    return BlockHeader(*evidence[1])