# tokenvm

`tokenvm` is the state machine of a token ledger, held in memory. It covers:

- **Assets** (`tokenvm.actions.assets`): `Transfer`, `CreateAsset`,
  `MintAsset`, `BurnAsset` and `ModifyAsset`. The native asset is the empty
  identifier (32 zero bytes).
- **Trading** (`tokenvm.actions.orders`): `CreateOrder`, `FillOrder` and
  `CloseOrder`, plus `OrderResult`, the output of a successful fill.
  `tokenvm.orderbook.OrderBook` keeps open orders per pair, best rate first.
- **Cross-chain transfers** (`tokenvm.actions.warp_actions`, `tokenvm.warp`):
  `ExportAsset` and `ImportAsset`, carrying a `WarpTransfer` payload with an
  optional reward and an optional swap on arrival.
- **Ed25519 authorisation** (`tokenvm.auth`): key generation, signing,
  verification and fee deduction from the native balance.
- **Binary codec** (`tokenvm.codec`): `Writer`, `Reader` and their optional
  counterparts, the packed big-endian format every action uses.
- **Genesis and rules** (`tokenvm.genesis`): chain parameters with defaults,
  JSON loading, and bech32 addresses (`address`, `parse_address`, prefix
  `rare`).
- **Identifiers** (`tokenvm.ids`): SHA-256 identifiers and their checksummed
  base58 text form (`to_id`, `id_to_string`, `id_from_string`).
- **`token-cli`**: writes genesis files and Prometheus configuration.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

Create a genesis file from a JSON list of allocations
(`[{"address": "rare1...", "balance": 1000}]`):

```
token-cli genesis generate allocations.json --genesis-file genesis.json
```

`--min-unit-price`, `--max-block-units`, `--window-target-units` and
`--window-target-blocks` override the defaults of the generated genesis; a
negative value (the default) keeps the built-in setting. The file is written
with mode `0o600`.

Write a Prometheus scrape configuration for a chain's nodes and print the
dashboard queries and a pre-built dashboard link:

```
token-cli prometheus generate CHAIN_ID http://127.0.0.1:9650 http://127.0.0.1:9652
```

Each URI must include a port. `--prometheus-file` (default
`/tmp/prometheus.yaml`) sets where the YAML goes and `--prometheus-data` the
storage path shown in the suggested Prometheus command.

On failure the tool prints `token-cli exited with error: ...` and exits with
status 1.

## Library use

Executing actions against the in-memory `State`:

```python
from tokenvm.actions.assets import CreateAsset, MintAsset, Transfer
from tokenvm.auth import generate_private_key, public_key
from tokenvm.chain import State

alice = public_key(generate_private_key())
bob = public_key(generate_private_key())
state = State()

asset_id = bytes(range(32))  # the creating transaction's identifier
CreateAsset(metadata=b"demo").execute(state, 0, alice, asset_id, False)
MintAsset(to=alice, asset=asset_id, value=100).execute(state, 0, alice, bytes(32), False)
result = Transfer(to=bob, asset=asset_id, value=40).execute(state, 0, alice, bytes(32), False)

assert result.success
assert state.get_balance(bob, asset_id) == 40
```

An action that cannot be applied returns a `Result` with `success=False` and a
reason in `output` (for example `b"value is zero"`); decoding bad bytes raises
`CodecError` or `InvalidObjectError` instead.

Actions on the wire, prefixed by their one-byte type:

```python
from tokenvm.registry import marshal_action, parse_action

data = marshal_action(Transfer(to=bob, asset=asset_id, value=40))
assert parse_action(data) == Transfer(to=bob, asset=asset_id, value=40)
```

`ImportAsset` needs the received `tokenvm.warp.WarpMessage`:
`parse_action(data, warp_message)`.

Keys and signatures:

```python
from tokenvm.auth import ED25519Factory, generate_private_key

factory = ED25519Factory(generate_private_key())
auth = factory.sign(b"message", None)
auth.async_verify(b"message")  # raises InvalidSignatureError on a mismatch
```

Genesis:

```python
from tokenvm.genesis import load_genesis

genesis = load_genesis(b'{"minUnitPrice": 5}')
genesis.load(state)  # credits allocations and records the native supply
print(genesis.to_json())
```

## What it does not do

The package has no node: it does not build or gossip blocks, persist state to
disk, or serve or call any RPC endpoint. `token-cli` only handles genesis and
Prometheus files; it keeps no key store or list of chains, and it cannot
submit transactions, query balances or watch a running chain.