"""Fixed-point constants shared across Vaultus modules."""

from __future__ import annotations

# Rates are expressed in basis points; 10_000 bps == 100%.
BPS = 10_000
MAX_RATE = BPS

# Scale used for utilisation ratios (1e18 == 100%).
PRECISION = 10**18

# The underlying asset is a 6-decimal stablecoin.  Bootstrap shares are scaled
# to 18 decimals so the initial share price is 1e-12 asset units per share.
ASSET_DECIMALS = 6
SHARE_PRECISION = 10**12

__all__ = ["ASSET_DECIMALS", "BPS", "MAX_RATE", "PRECISION", "SHARE_PRECISION"]
