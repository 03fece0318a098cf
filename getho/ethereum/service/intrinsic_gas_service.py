from typing import Sequence

from getho.constants.gas_constants import (
    TX_ACCESS_LIST_ADDRESS_GAS,
    TX_ACCESS_LIST_STORAGE_KEY_GAS,
    TX_BASE_GAS,
    TX_CREATE_GAS,
    TX_DATA_NON_ZERO_GAS,
    TX_DATA_ZERO_GAS,
)
from getho.ethereum.enums.transaction_kind import TransactionKind
from getho.ethereum.models.access_list import EthAccessListEntry


class IntrinsicGasService:
    """
    Protocol minimum gas for a transaction's static shape.

    This is an estimate: EIP-3860 init code word cost and EIP-7623 calldata
    floor pricing are not included, and nothing is executed.
    """

    @staticmethod
    def calldata_gas(data: bytes) -> int:
        zero_bytes = data.count(0)
        return zero_bytes * TX_DATA_ZERO_GAS + (len(data) - zero_bytes) * TX_DATA_NON_ZERO_GAS

    @staticmethod
    def access_list_gas(kind: TransactionKind, access_list: Sequence[EthAccessListEntry]) -> int:
        if kind is TransactionKind.LEGACY:
            return 0
        return sum(
            TX_ACCESS_LIST_ADDRESS_GAS + len(entry.storage_keys) * TX_ACCESS_LIST_STORAGE_KEY_GAS
            for entry in access_list
        )

    @classmethod
    def estimate_intrinsic_gas(
        cls,
        kind: TransactionKind,
        data: bytes,
        access_list: Sequence[EthAccessListEntry],
        is_contract_creation: bool,
    ) -> int:
        gas = TX_BASE_GAS
        gas += cls.calldata_gas(data)
        gas += cls.access_list_gas(kind, access_list)
        if is_contract_creation:
            gas += TX_CREATE_GAS
        return gas
