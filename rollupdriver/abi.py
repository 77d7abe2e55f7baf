"""Solidity ABI encoding and decoding.

Types are canonical Solidity type strings such as ``"uint256"``, ``"bytes32[8]"``,
``"bytes[]"`` or ``"(uint64,bytes,address)"``. Integers map to ``int``,
``address`` to 20 raw bytes, ``bytesN``/``bytes`` to ``bytes``, ``string`` to
``str``, tuples and fixed arrays to ``tuple`` and dynamic arrays to ``list``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

WORD = 32

_ARRAY_SUFFIX = re.compile(r"\[(\d*)\]$")
_INTEGER = re.compile(r"(u?int)(\d*)$")
_FIXED_BYTES = re.compile(r"bytes(\d+)$")


class AbiError(ValueError):
    """Raised when a value cannot be encoded or data cannot be decoded."""


@dataclass(frozen=True)
class _Type:
    kind: str
    size: int = 0
    elem: Optional["_Type"] = None
    components: tuple["_Type", ...] = ()

    @property
    def dynamic(self) -> bool:
        if self.kind == "array":
            return self.size < 0 or self.elem.dynamic
        if self.kind == "tuple":
            return any(c.dynamic for c in self.components)
        return self.kind in ("bytes", "string")

    @property
    def head_size(self) -> int:
        if self.dynamic:
            return WORD
        if self.kind == "array":
            return self.size * self.elem.head_size
        if self.kind == "tuple":
            return sum(c.head_size for c in self.components)
        return WORD


def _split_components(text: str) -> list[str]:
    if not text.strip():
        return []
    parts, current, depth = [], "", 0
    for char in text:
        depth += {"(": 1, ")": -1}.get(char, 0)
        if depth < 0:
            raise AbiError(f"unbalanced parentheses in type: {text!r}")
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += char
    if depth:
        raise AbiError(f"unbalanced parentheses in type: {text!r}")
    return parts + [current]


@lru_cache(maxsize=None)
def _parse_type(text: str) -> _Type:
    text = text.strip()
    if not text:
        raise AbiError("empty type")
    suffix = _ARRAY_SUFFIX.search(text)
    if suffix:
        size = int(suffix.group(1)) if suffix.group(1) else -1
        return _Type("array", size, _parse_type(text[: suffix.start()]))
    if text.startswith("("):
        if not text.endswith(")"):
            raise AbiError(f"invalid tuple type: {text!r}")
        return _Type("tuple", components=tuple(map(_parse_type, _split_components(text[1:-1]))))
    if text in ("address", "bool", "bytes", "string"):
        return _Type(text)
    integer = _INTEGER.match(text)
    if integer:
        bits = int(integer.group(2) or 256)
        if bits == 0 or bits > 256 or bits % 8:
            raise AbiError(f"invalid integer size: {text!r}")
        return _Type(integer.group(1), bits)
    fixed = _FIXED_BYTES.match(text)
    if fixed and 1 <= int(fixed.group(1)) <= 32:
        return _Type("fixed_bytes", int(fixed.group(1)))
    raise AbiError(f"unsupported type: {text!r}")


def _word(value: int) -> bytes:
    return value.to_bytes(WORD, "big")


def _pad_right(data: bytes) -> bytes:
    return data + bytes(-len(data) % WORD)


def _check(value: Any, kinds: tuple, what: str) -> Any:
    if isinstance(value, bool) and bool not in kinds:
        raise AbiError(f"{what} does not accept a boolean")
    if not isinstance(value, kinds):
        raise AbiError(f"{what} got unexpected {type(value).__name__}")
    return value


def _as_sequence(value: Any, what: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes, bytearray, memoryview)) or not isinstance(value, Sequence):
        raise AbiError(f"{what} expects a sequence, got {type(value).__name__}")
    return value


_BYTES = (bytes, bytearray, memoryview)


def _encode_value(t: _Type, value: Any) -> bytes:
    kind = t.kind
    if kind in ("uint", "int"):
        number = _check(value, (int,), kind)
        low, high = (0, 1 << t.size) if kind == "uint" else (-(1 << t.size - 1), 1 << t.size - 1)
        if not low <= number < high:
            raise AbiError(f"value {number} out of range for {kind}{t.size}")
        return _word(number % (1 << 256))
    if kind == "bool":
        return _word(int(_check(value, (bool,), "bool")))
    if kind in ("address", "fixed_bytes"):
        data = bytes(_check(value, _BYTES, kind))
        size = 20 if kind == "address" else t.size
        if len(data) != size:
            raise AbiError(f"{kind} expects {size} bytes, got {len(data)}")
        return bytes(12) + data if kind == "address" else _pad_right(data)
    if kind in ("bytes", "string"):
        data = _check(value, _BYTES if kind == "bytes" else (str,), kind)
        data = data.encode("utf-8") if kind == "string" else bytes(data)
        return _word(len(data)) + _pad_right(data)
    items = _as_sequence(value, kind)
    if kind == "array":
        if t.size >= 0 and len(items) != t.size:
            raise AbiError(f"array expects {t.size} elements, got {len(items)}")
        body = _encode_sequence([t.elem] * len(items), items)
        return body if t.size >= 0 else _word(len(items)) + body
    if len(items) != len(t.components):
        raise AbiError(f"tuple expects {len(t.components)} components, got {len(items)}")
    return _encode_sequence(t.components, items)


def _encode_sequence(types: Sequence[_Type], values: Sequence[Any]) -> bytes:
    offset = sum(t.head_size for t in types)
    heads, tails = [], []
    for t, value in zip(types, values):
        encoded = _encode_value(t, value)
        if t.dynamic:
            heads.append(_word(offset))
            tails.append(encoded)
            offset += len(encoded)
        else:
            heads.append(encoded)
    return b"".join(heads + tails)


def _read_uint(data: bytes, position: int) -> int:
    if position < 0 or position + WORD > len(data):
        raise AbiError(f"data too short: need a word at offset {position}, have {len(data)} bytes")
    return int.from_bytes(data[position:position + WORD], "big")


def _decode_at(t: _Type, data: bytes, start: int) -> Any:
    kind = t.kind
    if kind in ("bytes", "string"):
        length, begin = _read_uint(data, start), start + WORD
        if begin + length > len(data):
            raise AbiError(f"data too short: byte string of length {length} at offset {begin}")
        raw = data[begin:begin + length]
        if kind == "bytes":
            return raw
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise AbiError(f"invalid utf-8 string: {exc}") from exc
    if kind == "tuple":
        return _decode_sequence(t.components, data, start)
    if kind == "array":
        if t.size >= 0:
            return _decode_sequence([t.elem] * t.size, data, start)
        count = _read_uint(data, start)
        if start + WORD + count * t.elem.head_size > len(data):
            raise AbiError(f"data too short for array of {count} elements")
        return list(_decode_sequence([t.elem] * count, data, start + WORD))

    number = _read_uint(data, start)
    if kind == "uint":
        if number >= 1 << t.size:
            raise AbiError(f"value out of range for uint{t.size}")
        return number
    if kind == "int":
        number -= (1 << 256) if number >= 1 << 255 else 0
        if not -(1 << t.size - 1) <= number < 1 << t.size - 1:
            raise AbiError(f"value out of range for int{t.size}")
        return number
    if kind == "bool":
        if number > 1:
            raise AbiError("improperly encoded boolean value")
        return bool(number)
    word = data[start:start + WORD]
    return word[12:] if kind == "address" else word[: t.size]


def _decode_sequence(types: Sequence[_Type], data: bytes, base: int) -> tuple[Any, ...]:
    values, position = [], base
    for t in types:
        where = base + _read_uint(data, position) if t.dynamic else position
        values.append(_decode_at(t, data, where))
        position += t.head_size
    return tuple(values)


def encode(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """ABI-encode ``values`` as the argument list described by ``types``."""
    parsed = [_parse_type(text) for text in types]
    values = _as_sequence(values, "argument list")
    if len(parsed) != len(values):
        raise AbiError(f"expected {len(parsed)} values, got {len(values)}")
    return _encode_sequence(parsed, values)


def decode(types: Sequence[str], data: bytes) -> tuple[Any, ...]:
    """Decode ABI-encoded ``data`` as the argument list described by ``types``."""
    return _decode_sequence([_parse_type(text) for text in types], bytes(data), 0)