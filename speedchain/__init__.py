"""A small proof-of-work blockchain node with account state, gas accounting, a mempool and JSON-RPC."""

__version__ = "0.1.0"