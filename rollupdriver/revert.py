"""Helpers for reading contract revert reasons out of JSON-RPC errors."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .types import keccak256


class JsonRpcError(Exception):
    """An error object returned by a JSON-RPC server."""

    def __init__(self, code: int = 0, message: str = "", data: Any = None) -> None:
        super().__init__(code, message, data)
        self.code = code
        self.message = message
        self.data = data

    def __str__(self) -> str:
        if not self.message:
            return f"json-rpc error {self.code}"
        return self.message


def get_revert_reason_hash(err: BaseException) -> str:
    """Return the revert reason selector carried by the error's direct cause."""
    inner = err.__cause__
    if isinstance(inner, Mapping):
        data = inner.get("data")
    else:
        data = getattr(inner, "data", None)
    if not isinstance(data, str):
        type_name = "None" if data is None else type(data).__name__
        raise ValueError(f"invalid revert reason, {type_name}")
    return data


def check_expect_revert_reason(expect: str, revert_err: BaseException) -> bool:
    """Tell whether the revert reason matches the selector of ``expect``."""
    reason = get_revert_reason_hash(revert_err)
    return "0x" + keccak256(expect.encode()).hex()[:8] == reason