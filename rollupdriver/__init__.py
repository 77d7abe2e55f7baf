"""Header and ABI encoding, fixed-K signing, sync progress tracking, metrics, flags and logging for a rollup driver."""

__version__ = "0.1.0"