# speedchain

A small proof-of-work blockchain node. It keeps Ethereum-style accounts
(balance and nonce per address), charges gas for every transfer, collects
signed transactions in a mempool, mines them into Keccak-256 hashed blocks
and stores the blocks on disk in an SQLite database. A JSON-RPC 2.0
endpoint over HTTP lets clients ask for the current block number and submit
transfers.

## Installing

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Running a node

```
speedchain
```

Options:

| Option         | Default         | Meaning                                             |
|----------------|-----------------|-----------------------------------------------------|
| `--db`         | `blockchain_db` | directory holding the block database (`chain.sqlite3`) |
| `--difficulty` | `4`             | number of leading hexadecimal zeros a block hash needs |
| `--host`       | `127.0.0.1`     | address to listen on                                |
| `--port`       | `8545`          | port to listen on                                   |

Every 5 seconds the node checks the mempool. If transactions are waiting,
each is applied to the account state (those that fail validation are
logged and leave the state untouched), the whole batch is mined into a new
block, the block is stored and the mempool is cleared. Otherwise the cycle
is skipped. Stop the node with Ctrl+C or SIGTERM.

## JSON-RPC methods

Requests are JSON-RPC 2.0, sent as HTTP POST to `/`. Parameters may be
given as a list in the order below or as an object with these names.
Batches are accepted; notifications (requests without an `id`) get an
empty `204` reply.

| Method                | Parameters                                        | Result                                   |
|-----------------------|---------------------------------------------------|------------------------------------------|
| `eth_blockNumber`     | none                                              | index of the latest block (0 when empty) |
| `eth_sendTransaction` | `from`, `to`, `amount`, `gas_limit`, `gas_price`  | hex hash of the queued transaction, without `0x` |

`from` must be a checksummed address; `to` may be any hex address. The
numeric parameters must be unsigned 64-bit integers.

Example request:

```json
{"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber", "params": []}
```

Errors use the standard codes: `-32700` for unparsable JSON, `-32600` for
a malformed request, `-32601` for an unknown method, `-32602` for bad
parameters and `-32603` (internal error) when the chain refuses the call,
with the reason as the message.

## Gas rules

The default `GasConfig` uses:

- intrinsic gas: 21,000
- gas per byte: 4 (a transfer is charged for 40 bytes, so it needs 21,160 gas)
- minimum gas price: 1 gwei (1,000,000,000 wei)
- block gas limit: 1,000,000

`apply_transaction` rejects a transaction when its gas price is below the
minimum (`GasPriceTooLow`), its gas limit is outside the allowed range
(`InvalidGasLimit`) or below the intrinsic cost (`InsufficientGas`), it
sends to its own address (`SameAddress`), the sender cannot cover
`amount + gas_limit * gas_price` (`InsufficientBalance`), its nonce does
not match the sender's (`InvalidNonce`) or the recipient's balance would
overflow 256 bits (`BalanceOverflow`). Only the gas actually used is
charged.

## Using the library

```python
from speedchain.crypto import KeyPair, to_checksum_address
from speedchain.gas import GasConfig
from speedchain.state import State
from speedchain.state_transition import apply_transaction
from speedchain.transaction import Transaction

alice = KeyPair.generate("alice")
bob = KeyPair.generate("bob")

state = State()
state.fund_account(alice.address, 100 * 10**18)

tx = Transaction.create(
    to_checksum_address(alice.address),
    to_checksum_address(bob.address),
    2 * 10**18,
    30_000,
    20 * 10**9,
)
apply_transaction(state, tx, GasConfig())

print(state.get_balance(bob.address))   # 2000000000000000000
print(state.get_nonce(alice.address))   # 1
```

Key pairs are derived deterministically from the Keccak hash of their
name, so the same name always gives the same address. The modules are:

- `speedchain.crypto`: `keccak256`, `to_checksum_address`, `parse_address`,
  `parse_checksummed_address`, `KeyPair`, `Signature` and the
  `SignatureError` family
- `speedchain.account`: `Account`
- `speedchain.gas`: `GasConfig`, `calculate_intrinsic_gas`,
  `validate_gas_price`, `validate_gas_limit`
- `speedchain.state`: `State` and the `StateTransitionError` family
- `speedchain.transaction`: `Transaction`
- `speedchain.state_transition`: `apply_transaction`
- `speedchain.block`: `Block`, mined with proof of work by `Block.mine`
- `speedchain.mempool`: `Mempool` and `MempoolError`
- `speedchain.storage`: `Storage` and `StorageError`, the on-disk block store
- `speedchain.blockchain`: `Blockchain` and `BlockchainError`, tying the
  above together
- `speedchain.rpc`: `SpeedRpc`, `RpcError` and `create_app` (an aiohttp
  application)
- `speedchain.server`: `SpeedBlockchainServer` and `main`

## What it does not do

- The account state lives in memory only. Blocks are stored on disk, but
  balances and nonces start empty each time a `Blockchain` is created, and
  there is no RPC method to fund accounts or read balances; funding is done
  through `State.fund_account` in code.
- `Blockchain.create_transaction` signs every transaction on the node with
  one fixed key derived from the name `default`; there is no client-side
  signing or wallet.
- A mined block holds every transaction that was pending, including those
  that failed validation and were not applied to the state.
- The node runs alone: there is no peer-to-peer networking or consensus
  between nodes.