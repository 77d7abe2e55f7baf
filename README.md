# rollupdriver

Pieces a rollup driver is built from, each usable on its own. It needs
Python 3.10 or later and depends on `pycryptodome` for Keccak-256.

## Modules

- **`rollupdriver.types`**: `Header` (an execution layer block header, with
  `Header.hash()` giving the keccak256 of its RLP encoding) and `BlockHeader`
  (the header layout used by the protocol contracts). `from_geth_header` and
  `to_geth_header` convert between them. A missing base fee becomes `0` on the
  way in, and a zero base fee becomes `None` on the way back.
  `to_executable_data_v1` builds an `ExecutableDataV1` Engine API payload from
  a `Header`. `bloom_to_bytes` splits a 256-byte bloom into eight 32-byte
  words, and `bytes_to_bloom` joins them again. Both raise `ValueError` on
  wrong sizes. The module also provides `keccak256`, `rlp_encode` (byte
  strings, non-negative integers and nested lists), and the constants
  `GOLDEN_TOUCH_ADDRESS` and `GOLDEN_TOUCH_PRIV_KEY` of the account that signs
  anchor transactions.
- **`rollupdriver.signer`**: `FixedKSigner(priv_key)` takes a `0x`-prefixed
  hex private key and raises `ValueError` when the key is zero or not below
  the curve order. `sign_with_k(k)` returns a function that signs a 32-byte
  hash with nonce `k`. That function returns a 65-byte `r || s || v`
  signature with low `s`, or `None` when `s` would be zero.
  `sign_anchor_payload(signer, digest)` tries `k = 1` and then `k = 2`. It
  raises `ValueError` for a digest that is not 32 bytes, and `RuntimeError`
  if both nonces fail.
- **`rollupdriver.revert`**: `JsonRpcError(code, message, data)` is an
  exception type. `get_revert_reason_hash(err)` reads the string `data` of the
  error's `__cause__`, which may be an object or a mapping, and raises
  `ValueError` if it is not a string. `check_expect_revert_reason(expect, err)`
  compares that value with the 4-byte selector `0x` + keccak256 of `expect`.
- **`rollupdriver.abi`**: `encode(types, values)` and `decode(types, data)`
  implement Solidity ABI encoding. They cover `uintN`/`intN`, `bool`,
  `address`, `bytesN`, `bytes`, `string`, fixed and dynamic arrays, and tuples
  written as `"(t1,t2,...)"`. Errors raise `AbiError`.
- **`rollupdriver.encoding`**: the dataclasses `BlockMetadata` and
  `TaikoL1Evidence`, with the following functions:
  - `encode_block_metadata`
  - `encode_evidence`
  - `encode_propose_block_input`, which returns `[encoded metadata, tx list bytes]`
  - `encode_commit_hash`, which is keccak256 of the 20-byte beneficiary followed by the 32-byte tx list hash
  - `decode_evidence_header`

  Failures raise `EncodingError`.
- **`rollupdriver.progress_tracker`**: `SyncProgress` and
  `sync_progressed(last, new)`. The latter is false when `last` is `None` and
  true when `new` is `None`. Otherwise it is true when any block, state,
  snap-sync or healing counter grew.

  `SyncProgressTracker(client, timeout)` takes any client with
  `sync_progress()` and `block_number()` methods. It has these methods:
  - `update_meta`: records the verified block a beacon sync was triggered towards.
  - `check_progress`: runs one check and marks the engine out of sync after `timeout` seconds without progress.
  - `track(stop_event)`: repeats the check every `check_interval` seconds (10 by default) until the event is set.
  - `clear_meta`, `head_changed`, `out_of_sync`, `triggered`
  - `last_synced_verified_block_id`, `last_synced_verified_block_height`, `last_synced_verified_block_hash`
- **`rollupdriver.metrics`**: `Gauge.update`, `Counter.inc`, and a `Registry`
  whose `gauge(name)` and `counter(name)` create or return metrics.
  `render()` produces the Prometheus text format, with `/` in names turned
  into `_`. `DEFAULT_REGISTRY` holds the driver, proposer and prover metrics.
  `serve(enabled, addr, port, stop_event, registry)` serves the registry over
  HTTP and blocks until `stop_event` is set. It returns at once when
  `enabled` is false.
- **`rollupdriver.flags`**: `Flag` (with `add_to(parser)`), `merge_flags` and
  `build_parser(prog, flags)`. Together they build an `argparse` parser that
  accepts `-name` and `--name`, grouped by category. The predefined lists are
  `COMMON_FLAGS`, `PROPOSER_FLAGS` and `PROVER_FLAGS`.
- **`rollupdriver.logger`**: `init_logger(verbosity, log_json, stream)`
  replaces the root logger's handlers with one writing to `stream` (stdout by
  default). It writes terminal-style lines, or one JSON object per record
  through `JsonFormatter`. Verbosity 0 to 5 maps to critical, error, warning,
  info, debug and trace. A negative verbosity silences everything.

## Examples

```python
from rollupdriver.types import Header, from_geth_header, to_geth_header, keccak256

header = Header(number=7, gas_limit=30_000_000, base_fee=1)
assert to_geth_header(from_geth_header(header)) == header
assert len(keccak256(b"")) == 32
```

```python
from rollupdriver.progress_tracker import SyncProgress, sync_progressed

assert sync_progressed(SyncProgress(current_block=0), SyncProgress(current_block=1))
assert not sync_progressed(SyncProgress(), SyncProgress())
```

```python
from rollupdriver.metrics import Registry

registry = Registry()
registry.gauge("driver/l1Head/height").update(42)
registry.counter("proposer/epoch").inc(1)
print(registry.render())
```

```python
from rollupdriver.flags import PROVER_FLAGS, build_parser
from rollupdriver.logger import init_logger

parser = build_parser("prover", PROVER_FLAGS)
init_logger(3, False, None)
```

## What it does not do

The package has no command to run, no RPC client and no connection to any
node. It does not propose, prove or sync blocks itself. Callers supply the
client that `SyncProgressTracker` polls and drive the other pieces
themselves.

## Tests

```
pip install -e .[test]
pytest
```