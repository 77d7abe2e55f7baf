import random

import pytest

from rollupdriver import abi
from rollupdriver.encoding import (
    BLOCK_METADATA_TYPE,
    BlockMetadata,
    EncodingError,
    TaikoL1Evidence,
    decode_evidence_header,
    encode_block_metadata,
    encode_commit_hash,
    encode_evidence,
    encode_propose_block_input,
)
from rollupdriver.types import EMPTY_UNCLE_HASH, Header, from_geth_header, to_geth_header

_rng = random.Random(20221223)


def _random_hash() -> bytes:
    return _rng.randbytes(32)


def _random_u64() -> int:
    return _rng.getrandbits(64)


def _make_header(base_fee=None) -> Header:
    return Header(
        parent_hash=_random_hash(),
        uncle_hash=EMPTY_UNCLE_HASH,
        coinbase=_random_hash()[-20:],
        root=_random_hash(),
        tx_hash=_random_hash(),
        receipt_hash=_random_hash(),
        bloom=bytes(224) + _random_hash(),
        difficulty=_random_u64(),
        number=_random_u64(),
        gas_limit=_random_u64(),
        gas_used=_random_u64(),
        time=1_700_000_000,
        extra=_random_hash(),
        mix_digest=_random_hash(),
        nonce=_random_u64(),
        base_fee=base_fee,
    )


def _make_meta() -> BlockMetadata:
    return BlockMetadata(
        id=_random_u64(),
        l1_height=_random_u64(),
        l1_hash=_random_hash(),
        beneficiary=_random_hash()[-20:],
        gas_limit=_random_u64(),
        timestamp=1_700_000_000,
        tx_list_hash=_random_hash(),
        mix_hash=_random_hash(),
        extra_data=_random_hash(),
    )


@pytest.fixture
def header() -> Header:
    return _make_header(base_fee=_random_u64())


@pytest.fixture
def meta() -> BlockMetadata:
    return _make_meta()


def test_encode_evidence(header, meta):
    evidence = TaikoL1Evidence(
        meta=meta,
        header=from_geth_header(header),
        prover=_random_hash()[-20:],
        proofs=[_random_hash(), _random_hash(), _random_hash()],
    )
    encoded = encode_evidence(evidence)
    assert len(encoded) > 0
    assert len(encoded) % 32 == 0
    assert encoded[:32] == (32).to_bytes(32, "big")


def test_encode_commit_hash():
    beneficiary = _random_hash()[-20:]
    tx_list_hash = _random_hash()
    digest = encode_commit_hash(beneficiary, tx_list_hash)
    assert len(digest) == 32
    assert digest == encode_commit_hash(beneficiary, tx_list_hash)
    assert digest != encode_commit_hash(beneficiary, _random_hash())


@pytest.mark.parametrize("beneficiary, tx_list_hash", [(bytes(19), bytes(32)), (bytes(20), bytes(31))])
def test_encode_commit_hash_rejects_bad_lengths(beneficiary, tx_list_hash):
    with pytest.raises(EncodingError):
        encode_commit_hash(beneficiary, tx_list_hash)


def test_encode_propose_block_input(meta):
    tx_list = _random_hash()
    encoded = encode_propose_block_input(meta, tx_list)
    assert len(encoded) == 2
    assert encoded[0] == encode_block_metadata(meta)
    assert encoded[1] == tx_list


def test_block_metadata_round_trip(meta):
    (decoded,) = abi.decode([BLOCK_METADATA_TYPE], encode_block_metadata(meta))
    assert BlockMetadata(*decoded) == meta


def test_encode_block_metadata_rejects_bad_hash(meta):
    meta.l1_hash = bytes(31)
    with pytest.raises(EncodingError):
        encode_block_metadata(meta)


def test_encode_evidence_rejects_bad_prover(header, meta):
    evidence = TaikoL1Evidence(meta=meta, header=from_geth_header(header), prover=bytes(21))
    with pytest.raises(EncodingError):
        encode_evidence(evidence)


def test_decode_evidence_header_rejects_random_bytes():
    with pytest.raises(EncodingError):
        decode_evidence_header(_rng.randbytes(1024))


def test_decode_evidence_header(header):
    block_meta = BlockMetadata(
        id=_random_u64(),
        l1_height=_random_u64(),
        l1_hash=_random_hash(),
        beneficiary=_random_u64().to_bytes(20, "big"),
        tx_list_hash=_random_hash(),
        mix_hash=_random_hash(),
        extra_data=_random_hash(),
        gas_limit=_random_u64(),
        timestamp=_random_u64(),
        commit_height=_random_u64(),
        commit_slot=_random_u64(),
    )
    encoded = encode_evidence(
        TaikoL1Evidence(
            meta=block_meta,
            header=from_geth_header(header),
            prover=_random_u64().to_bytes(20, "big"),
            proofs=[_rng.randbytes(1024)],
        )
    )
    assert decode_evidence_header(encoded) == from_geth_header(header)


def test_decode_evidence_header_legacy_round_trip():
    legacy = _make_header(base_fee=None)
    encoded = encode_evidence(TaikoL1Evidence(meta=_make_meta(), header=from_geth_header(legacy)))
    decoded = decode_evidence_header(encoded)
    assert decoded.base_fee_per_gas == 0
    assert to_geth_header(decoded) == legacy
    assert to_geth_header(decoded).hash() == legacy.hash()