"""
Public, immutable rules of the pooled lottery.

These values define what a valid entry is and how the simulated ledger
charges for transactions. Changing them changes who can enter and MUST be
announced before a round starts.
"""

# Base units per ether (wei)
ETHER_DECIMALS = 18
WEI_PER_ETHER = 10**ETHER_DECIMALS

# An entry must be strictly greater than this (raw units)
MIN_CONTRIBUTION = WEI_PER_ETHER // 1000  # 0.001 ether

# Flat fee charged to the sender of every committed transaction (raw units)
DEFAULT_GAS_FEE = WEI_PER_ETHER // 2000  # 0.0005 ether

# Starting balance of provisioned accounts, mirrors a dev chain
DEFAULT_ACCOUNT_BALANCE = 100 * WEI_PER_ETHER

# Provisioned addresses are base58 encodings of this many bytes
ADDRESS_BYTES = 32

# Seconds between automined blocks in the simulated ledger
BLOCK_TIME_S = 12
