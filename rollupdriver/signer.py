"""ECDSA signing over secp256k1 with a caller-chosen nonce ``k``."""

from __future__ import annotations

from typing import Callable, Optional

# secp256k1 domain parameters.
_P = 2**256 - 2**32 - 977
_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_HALF_N = _N >> 1
_G = (
    0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
    0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8,
)

_Point = Optional[tuple[int, int]]
SignFunc = Callable[[bytes], Optional[bytes]]


def _point_add(p: _Point, q: _Point) -> _Point:
    if p is None:
        return q
    if q is None:
        return p
    x1, y1 = p
    x2, y2 = q
    if x1 == x2:
        if (y1 + y2) % _P == 0:
            return None
        slope = 3 * x1 * x1 * pow(2 * y1, -1, _P)
    else:
        slope = (y2 - y1) * pow(x2 - x1, -1, _P)
    slope %= _P
    x3 = (slope * slope - x1 - x2) % _P
    y3 = (slope * (x1 - x3) - y1) % _P
    return x3, y3


def _scalar_base_mult(k: int) -> _Point:
    result: _Point = None
    addend: _Point = _G
    while k:
        if k & 1:
            result = _point_add(result, addend)
        addend = _point_add(addend, addend)
        k >>= 1
    return result


def _scalar_from_bytes(data: bytes) -> tuple[int, bool]:
    """Read up to 32 big-endian bytes as a scalar mod N, reporting overflow."""
    value = int.from_bytes(bytes(data[:32]), "big")
    return value % _N, value >= _N


def _decode_hex(text: str) -> bytes:
    if not text.startswith(("0x", "0X")):
        raise ValueError("hex string without 0x prefix")
    try:
        return bytes.fromhex(text[2:])
    except ValueError as exc:
        raise ValueError(f"invalid hex string: {exc}") from exc


class FixedKSigner:
    """Signs payloads with a fixed, caller-supplied ECDSA nonce."""

    def __init__(self, priv_key: str) -> None:
        key, overflow = _scalar_from_bytes(_decode_hex(priv_key))
        if overflow or key == 0:
            raise ValueError("invalid private key")
        self._key = key

    def __repr__(self) -> str:
        return f"{type(self).__name__}(<hidden>)"

    def sign_with_k(self, k: int) -> SignFunc:
        """Return a function signing 32-byte hashes with nonce ``k``.

        The function returns a 65-byte ``r || s || v`` signature, or ``None``
        when this ``k`` yields ``s == 0`` for the given hash.
        """
        k %= _N
        if k == 0:
            raise ValueError("k must not be zero modulo the curve order")

        point = _scalar_base_mult(k)
        assert point is not None
        x, y = point
        r = x % _N
        recovery_code = (int(x >= _N) << 1) | (y & 1)
        k_inv = pow(k, -1, _N)
        key_times_r = self._key * r % _N
        r_bytes = r.to_bytes(32, "big")

        def sign(digest: bytes) -> Optional[bytes]:
            e, _ = _scalar_from_bytes(digest)
            s = (key_times_r + e) * k_inv % _N
            if s == 0:
                return None
            v = recovery_code
            if s > _HALF_N:
                s = _N - s
                v ^= 0x01
            return r_bytes + s.to_bytes(32, "big") + bytes([v])

        return sign


def sign_anchor_payload(signer: FixedKSigner, digest: bytes) -> bytes:
    """Sign an anchor transaction hash, trying k = 1 and then k = 2."""
    if len(digest) != 32:
        raise ValueError(f"hash is required to be exactly 32 bytes ({len(digest)})")

    for k in (1, 2):
        signature = signer.sign_with_k(k)(digest)
        if signature is not None:
            return signature

    raise RuntimeError("failed to sign anchor transaction using K = 1 and K = 2")