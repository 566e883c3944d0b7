"""Token ledger state machine: assets, orders, warp transfers, Ed25519 auth and a CLI."""

__version__ = "0.1.0"