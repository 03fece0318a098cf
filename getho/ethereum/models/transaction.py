from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from getho.ethereum.enums.transaction_kind import TransactionKind
from getho.ethereum.models.access_list import EthAccessListEntry

LEGACY_FEE_FIELDS = ("gas_price",)
FEE_MARKET_FEE_FIELDS = ("max_fee_per_gas", "max_priority_fee_per_gas")
BLOB_FIELDS = ("blob_gas_fee_cap", "max_fee_per_blob_gas")


class EthTransaction(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = "transaction"
    hash: str
    nonce: int = Field(ge=0)
    block_hash: str | None = None
    block_number: int | None = None
    transaction_index: int | None = None
    from_address: str
    # None exactly for contract creation
    to_address: str | None = None
    value: int = Field(default=0, ge=0)
    gas_limit: int = Field(ge=0)
    transaction_type: TransactionKind
    chain_id: int = Field(default=0, ge=0)
    access_list: Tuple[EthAccessListEntry, ...] = Field(default_factory=tuple)
    input: str = "0x"

    gas_price: int | None = Field(default=None, ge=0)
    max_fee_per_gas: int | None = Field(default=None, ge=0)
    max_priority_fee_per_gas: int | None = Field(default=None, ge=0)
    effective_gas_price: int | None = Field(default=None, ge=0)

    blob_gas_used: int | None = Field(default=None, ge=0)
    blob_gas_fee_cap: int | None = Field(default=None, ge=0)
    max_fee_per_blob_gas: int | None = Field(default=None, ge=0)
    blob_versioned_hashes: Tuple[str, ...] = Field(default_factory=tuple)

    status: int | None = None
    contract_address: str | None = None

    estimated_intrinsic_gas: int = Field(ge=0)

    @property
    def is_contract_creation(self) -> bool:
        return self.to_address is None

    @property
    def is_pending(self) -> bool:
        return self.block_hash is None

    @model_validator(mode="after")
    def validate_fee_fields(self) -> "EthTransaction":
        if self.transaction_type is TransactionKind.LEGACY:
            required, forbidden = LEGACY_FEE_FIELDS, FEE_MARKET_FEE_FIELDS
        else:
            required, forbidden = FEE_MARKET_FEE_FIELDS, LEGACY_FEE_FIELDS

        for field_name in required:
            if getattr(self, field_name) is None:
                raise ValueError(f"{field_name} is required for {self.transaction_type.value} transactions")
        for field_name in forbidden:
            if getattr(self, field_name) is not None:
                raise ValueError(f"{field_name} must be null for {self.transaction_type.value} transactions")

        is_blob = self.transaction_type is TransactionKind.BLOB
        for field_name in BLOB_FIELDS:
            if (getattr(self, field_name) is not None) != is_blob:
                raise ValueError(f"{field_name} must be set exactly for blob transactions")
        if not is_blob and (self.blob_gas_used is not None or self.blob_versioned_hashes):
            raise ValueError("blob gas fields are only valid for blob transactions")
        return self
