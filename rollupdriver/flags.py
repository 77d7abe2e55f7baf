"""Command line flags shared by the client applications."""

from __future__ import annotations

import argparse
import enum
import random
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence, Union

COMMON_CATEGORY = "COMMON"
METRICS_CATEGORY = "METRICS"
LOGGING_CATEGORY = "LOGGING"
DRIVER_CATEGORY = "DRIVER"
PROPOSER_CATEGORY = "PROPOSER"
PROVER_CATEGORY = "PROVER"

_UINT64_LIMIT = 1 << 64
_TRUE_WORDS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_WORDS = {"0", "f", "F", "FALSE", "false", "False"}


class FlagKind(enum.Enum):
    """The value type a flag takes."""

    STRING = "string"
    INT = "int"
    UINT = "uint"
    UINT64 = "uint64"
    BOOL = "bool"


def _parse_bool(text: str) -> bool:
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {text!r}")


def _parse_int(text: str) -> int:
    try:
        return int(text, 0)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {text!r}") from exc


def _parse_unsigned(limit: Union[int, None]) -> Callable[[str], int]:
    def parse(text: str) -> int:
        value = _parse_int(text)
        if value < 0 or (limit is not None and value >= limit):
            raise argparse.ArgumentTypeError(f"value out of range: {text!r}")
        return value

    return parse


_PARSERS: dict[FlagKind, Callable[[str], Any]] = {
    FlagKind.STRING: str,
    FlagKind.INT: _parse_int,
    FlagKind.UINT: _parse_unsigned(None),
    FlagKind.UINT64: _parse_unsigned(_UINT64_LIMIT),
    FlagKind.BOOL: _parse_bool,
}

_ZERO_VALUES: dict[FlagKind, Any] = {
    FlagKind.STRING: "",
    FlagKind.INT: 0,
    FlagKind.UINT: 0,
    FlagKind.UINT64: 0,
    FlagKind.BOOL: False,
}

_ArgumentContainer = Union[argparse.ArgumentParser, "argparse._ArgumentGroup"]


@dataclass(frozen=True)
class Flag:
    """A named command line option with a type, a default and a category."""

    name: str
    usage: str
    kind: FlagKind = FlagKind.STRING
    required: bool = False
    default: Any = None
    category: str = ""

    @property
    def dest(self) -> str:
        """Attribute name under which the parsed value is stored."""
        return self.name.replace(".", "_")

    @property
    def value_if_unset(self) -> Any:
        return _ZERO_VALUES[self.kind] if self.default is None else self.default

    def add_to(self, parser: _ArgumentContainer) -> None:
        """Register this flag on an argparse parser or argument group.

        Both ``-name`` and ``--name`` spellings are accepted.
        """
        options: dict[str, Any] = {
            "dest": self.dest,
            "help": self.usage,
            "type": _PARSERS[self.kind],
            "metavar": "" if self.kind is FlagKind.BOOL else self.kind.value,
        }
        if self.required:
            options["required"] = True
        else:
            options["default"] = self.value_if_unset
        if self.kind is FlagKind.BOOL:
            options["nargs"] = "?"
            options["const"] = True
            options["metavar"] = "BOOL"
        parser.add_argument(f"--{self.name}", f"-{self.name}", **options)


def merge_flags(*args: Iterable[Flag]) -> list[Flag]:
    """Concatenate flag groups, keeping their order."""
    return [flag for group in args for flag in group]


def build_parser(prog: str, flags: Sequence[Flag]) -> argparse.ArgumentParser:
    """Build an argument parser holding ``flags``, grouped by category."""
    parser = argparse.ArgumentParser(prog=prog, allow_abbrev=False)
    groups: dict[str, Any] = {}
    for flag in flags:
        if not flag.category:
            flag.add_to(parser)
            continue
        group = groups.get(flag.category)
        if group is None:
            group = parser.add_argument_group(flag.category)
            groups[flag.category] = group
        flag.add_to(group)
    return parser


# Required flags used by all client applications.
L1_WS_ENDPOINT = Flag(
    "l1.ws", "Websocket RPC endpoint of a L1 ethereum node",
    required=True, category=COMMON_CATEGORY,
)
L2_WS_ENDPOINT = Flag(
    "l2.ws", "Websocket RPC endpoint of a L2 taiko-geth execution engine",
    required=True, category=COMMON_CATEGORY,
)
L1_HTTP_ENDPOINT = Flag(
    "l1.http", "HTTP RPC endpoint of a L1 ethereum node",
    required=True, category=COMMON_CATEGORY,
)
L2_HTTP_ENDPOINT = Flag(
    "l2.http", "HTTP RPC endpoint of a L2 taiko-geth execution engine",
    required=True, category=COMMON_CATEGORY,
)
TAIKO_L1_ADDRESS = Flag(
    "taikoL1", "TaikoL1 contract address", required=True, category=COMMON_CATEGORY,
)
TAIKO_L2_ADDRESS = Flag(
    "taikoL2", "TaikoL2 contract address", required=True, category=COMMON_CATEGORY,
)

# Logging
VERBOSITY = Flag(
    "verbosity",
    "Logging verbosity: 0=silent, 1=error, 2=warn, 3=info, 4=debug, 5=detail",
    kind=FlagKind.INT, default=3, category=LOGGING_CATEGORY,
)
LOG_JSON = Flag(
    "log.json", "Format logs with JSON", kind=FlagKind.BOOL, category=LOGGING_CATEGORY,
)

# Metrics
METRICS_ENABLED = Flag(
    "metrics", "Enable metrics collection and reporting",
    kind=FlagKind.BOOL, default=False, category=METRICS_CATEGORY,
)
METRICS_ADDR = Flag(
    "metrics.addr", "Metrics reporting server listening address",
    default="0.0.0.0", category=METRICS_CATEGORY,
)
METRICS_PORT = Flag(
    "metrics.port", "Metrics reporting server listening port",
    kind=FlagKind.INT, default=6060, category=METRICS_CATEGORY,
)

COMMON_FLAGS: list[Flag] = [
    L1_WS_ENDPOINT,
    TAIKO_L1_ADDRESS,
    TAIKO_L2_ADDRESS,
    VERBOSITY,
    LOG_JSON,
    METRICS_ENABLED,
    METRICS_ADDR,
    METRICS_PORT,
]

# Proposer
L1_PROPOSER_PRIV_KEY = Flag(
    "l1.proposerPrivKey",
    "Private key of the L1 proposer, who will send TaikoL1.proposeBlock transactions",
    required=True, category=PROPOSER_CATEGORY,
)
L2_SUGGESTED_FEE_RECIPIENT = Flag(
    "l2.suggestedFeeRecipient", "Address of the proposed block's suggested fee recipient",
    required=True, category=PROPOSER_CATEGORY,
)
PROPOSE_INTERVAL = Flag(
    "proposeInterval", "Time interval to propose L2 pending transactions",
    category=PROPOSER_CATEGORY,
)
COMMIT_SLOT = Flag(
    "commitSlot",
    "The commit slot will be used by proposer, by default, a random number will be used",
    kind=FlagKind.UINT64, default=random.getrandbits(64), category=PROPOSER_CATEGORY,
)
SHUFFLE_POOL_CONTENT = Flag(
    "shufflePoolContent",
    "Perform a weighted shuffle when building the transactions list to propose",
    kind=FlagKind.BOOL, default=False, category=PROPOSER_CATEGORY,
)
TX_POOL_LOCALS = Flag(
    "txpool.locals",
    "Perform a weighted shuffle when building the transactions list to propose",
    default="Comma separated accounts to treat as locals (priority inclusion)",
    category=PROPOSER_CATEGORY,
)

PROPOSER_FLAGS: list[Flag] = merge_flags(COMMON_FLAGS, [
    L2_HTTP_ENDPOINT,
    L1_PROPOSER_PRIV_KEY,
    L2_SUGGESTED_FEE_RECIPIENT,
    PROPOSE_INTERVAL,
    SHUFFLE_POOL_CONTENT,
    COMMIT_SLOT,
    TX_POOL_LOCALS,
])

# Prover
ZK_EVM_RPCD_ENDPOINT = Flag(
    "zkevmRpcdEndpoint", "RPC endpoint of a ZKEVM RPCD service",
    required=True, category=PROVER_CATEGORY,
)
ZK_EVM_RPCD_PARAMS_PATH = Flag(
    "zkevmRpcdParamsPath", "Path of ZKEVM parameters file to use",
    required=True, category=PROVER_CATEGORY,
)
L1_PROVER_PRIV_KEY = Flag(
    "l1.proverPrivKey",
    "Private key of L1 prover, "
    "who will send TaikoL1.proveBlock / TaikoL1.proveBlockInvalid transactions",
    required=True, category=PROVER_CATEGORY,
)
STARTING_BLOCK_ID = Flag(
    "startingBlockID", "If set, prover will start proving blocks from the block with this ID",
    kind=FlagKind.UINT64, category=PROVER_CATEGORY,
)
MAX_CONCURRENT_PROVING_JOBS = Flag(
    "maxConcurrentProvingJobs", "Limits the number of concurrent proving blocks jobs",
    kind=FlagKind.UINT, default=1, category=PROVER_CATEGORY,
)
DUMMY = Flag(
    "dummy", "Produce dummy proofs, testing purposes only",
    kind=FlagKind.BOOL, default=False, category=PROVER_CATEGORY,
)
RANDOM_DUMMY_PROOF_DELAY = Flag(
    "randomDummyProofDelay",
    "Set the random dummy proof delay between the bounds using the format: "
    "`lowerBound-upperBound` (e.g. `30m-1h`), testing purposes only",
    category=PROVER_CATEGORY,
)

PROVER_FLAGS: list[Flag] = merge_flags(COMMON_FLAGS, [
    L1_HTTP_ENDPOINT,
    L2_WS_ENDPOINT,
    L2_HTTP_ENDPOINT,
    ZK_EVM_RPCD_ENDPOINT,
    ZK_EVM_RPCD_PARAMS_PATH,
    L1_PROVER_PRIV_KEY,
    STARTING_BLOCK_ID,
    MAX_CONCURRENT_PROVING_JOBS,
    DUMMY,
    RANDOM_DUMMY_PROOF_DELAY,
])