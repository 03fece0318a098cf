# Intrinsic gas (Yellow Paper G_transaction, G_txdatazero, G_txdatanonzero,
# G_txcreate, EIP-2930 access list costs)
TX_BASE_GAS = 21000
TX_DATA_ZERO_GAS = 4
TX_DATA_NON_ZERO_GAS = 16
TX_CREATE_GAS = 32000
TX_ACCESS_LIST_ADDRESS_GAS = 2400
TX_ACCESS_LIST_STORAGE_KEY_GAS = 1900

# EIP-4844
GAS_PER_BLOB = 2**17
