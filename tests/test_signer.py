import pytest

from rollupdriver.signer import FixedKSigner, sign_anchor_payload
from rollupdriver.types import GOLDEN_TOUCH_PRIV_KEY

SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
G_X = "0x79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
TWO_G_X = "0xc6047f9441ed7d6d3045406e95c07cd85c778e4b8cef3ca7abac09b95c709ee5"

PAYLOAD_1 = "44943399d1507f3ce7525e9be2f987c3db9136dc759cb7f92f742154196868b9"
PAYLOAD_2 = "663d210fa6dba171546498489de1ba024b89db49e21662f91bf83cdffe788820"


def _signature(r, s, v):
    return bytes.fromhex(r[2:]) + bytes.fromhex(s[2:]) + bytes([v])


@pytest.fixture
def signer():
    return FixedKSigner(GOLDEN_TOUCH_PRIV_KEY)


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        (
            PAYLOAD_1,
            _signature(
                TWO_G_X,
                "0x38940d69b21d5b088beb706e9ebabe6422307e12863997a44239774467e240d5",
                1,
            ),
        ),
        (
            PAYLOAD_2,
            _signature(
                TWO_G_X,
                "0x5840695138a83611aa9dac67beb95aba7323429787a78df993f1c5c7f2c0ef7f",
                0,
            ),
        ),
    ],
)
def test_sign_with_k_two(signer, payload, expected):
    assert signer.sign_with_k(2)(bytes.fromhex(payload)) == expected


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        (
            PAYLOAD_1,
            _signature(
                G_X,
                "0x782a1e70872ecc1a9f740dd445664543f8b7598c94582720bca9a8c48d6a4766",
                1,
            ),
        ),
        (
            PAYLOAD_2,
            _signature(
                G_X,
                "0x568130fab1a3a9e63261d4278a7e130588beb51f27de7c20d0258d38a85a27ff",
                1,
            ),
        ),
    ],
)
def test_sign_anchor_payload(signer, payload, expected):
    assert sign_anchor_payload(signer, bytes.fromhex(payload)) == expected


@pytest.mark.parametrize("length", [0, 31, 33, 64])
def test_sign_anchor_payload_rejects_wrong_length(signer, length):
    with pytest.raises(ValueError, match=f"exactly 32 bytes \\({length}\\)"):
        sign_anchor_payload(signer, bytes(length))


def test_zero_s_falls_back_to_second_k(signer):
    key = int(GOLDEN_TOUCH_PRIV_KEY, 16)
    r = int(G_X, 16)
    digest = ((-key * r) % SECP256K1_N).to_bytes(32, "big")

    assert signer.sign_with_k(1)(digest) is None
    signature = sign_anchor_payload(signer, digest)
    assert signature[:32] == bytes.fromhex(TWO_G_X[2:])
    assert len(signature) == 65


@pytest.mark.parametrize("payload", [PAYLOAD_1, PAYLOAD_2])
@pytest.mark.parametrize("k", [1, 2, 3, 12345])
def test_signatures_are_low_s(signer, payload, k):
    signature = signer.sign_with_k(k)(bytes.fromhex(payload))
    assert len(signature) == 65
    assert 0 < int.from_bytes(signature[32:64], "big") <= SECP256K1_N // 2
    assert signature[64] in (0, 1, 2, 3)


def test_sign_function_is_reusable(signer):
    sign = signer.sign_with_k(2)
    first = sign(bytes.fromhex(PAYLOAD_1))
    sign(bytes.fromhex(PAYLOAD_2))
    assert sign(bytes.fromhex(PAYLOAD_1)) == first
    assert first[32:64] == bytes.fromhex(
        "38940d69b21d5b088beb706e9ebabe6422307e12863997a44239774467e240d5"
    )


@pytest.mark.parametrize("k", [0, SECP256K1_N])
def test_zero_k_is_rejected(signer, k):
    with pytest.raises(ValueError):
        signer.sign_with_k(k)


@pytest.mark.parametrize(
    "priv_key",
    [
        "0x" + "00" * 32,
        "0x",
        f"0x{SECP256K1_N:064x}",
        GOLDEN_TOUCH_PRIV_KEY[2:],
        "0xzz",
        "0x123",
    ],
)
def test_invalid_private_keys(priv_key):
    with pytest.raises(ValueError):
        FixedKSigner(priv_key)


def test_repr_hides_private_key(signer):
    assert GOLDEN_TOUCH_PRIV_KEY[2:] not in repr(signer)
    assert repr(signer) == "FixedKSigner(<hidden>)"