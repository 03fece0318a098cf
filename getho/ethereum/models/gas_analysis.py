from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field

from getho.ethereum.enums.gas_component_label import GasComponentLabel
from getho.ethereum.enums.transaction_kind import TransactionKind


class EthGasComponent(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    label: GasComponentLabel
    value: int = Field(ge=0)


class EthGasAnalysis(BaseModel):
    """
    Fee ledger for one transaction. Every amount is an exact integer in wei;
    a None total means one of its inputs was unavailable, see notes.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = "gas_analysis"
    transaction_hash: str
    block_hash: str | None = None
    block_number: int | None = None
    transaction_type: TransactionKind
    status: int | None = None

    gas_used: int = Field(ge=0)
    gas_limit: int = Field(ge=0)
    gas_used_is_upper_bound: bool = False

    base_fee_per_gas: int | None = Field(default=None, ge=0)
    gas_price: int | None = Field(default=None, ge=0)
    max_fee_per_gas: int | None = Field(default=None, ge=0)
    max_priority_fee_per_gas: int | None = Field(default=None, ge=0)
    max_fee_per_blob_gas: int | None = Field(default=None, ge=0)
    effective_gas_price: int | None = Field(default=None, ge=0)
    priority_fee_per_gas: int | None = Field(default=None, ge=0)

    total_fee_paid: int | None = Field(default=None, ge=0)
    base_fee_burnt: int | None = Field(default=None, ge=0)
    priority_fee: int | None = Field(default=None, ge=0)
    max_fee_cost: int | None = Field(default=None, ge=0)

    blob_gas_used: int | None = Field(default=None, ge=0)
    blob_gas_price: int | None = Field(default=None, ge=0)
    total_blob_fee_paid: int | None = Field(default=None, ge=0)
    total_execution_and_blob: int | None = Field(default=None, ge=0)

    components: Tuple[EthGasComponent, ...] = Field(default_factory=tuple)
    notes: Tuple[str, ...] = Field(default_factory=tuple)
