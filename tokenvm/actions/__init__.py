"""Ledger actions: asset management, order trading and warp transfers."""