from pydantic import BaseModel, ConfigDict, Field


class EthReceipt(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = "receipt"
    transaction_hash: str | None = None
    transaction_index: int | None = None
    block_hash: str | None = None
    block_number: int | None = None
    contract_address: str | None = None
    status: int | None = None
    cumulative_gas_used: int | None = Field(default=None, ge=0)
    gas_used: int | None = Field(default=None, ge=0)
    effective_gas_price: int | None = Field(default=None, ge=0)
    blob_gas_used: int | None = Field(default=None, ge=0)
    blob_gas_price: int | None = Field(default=None, ge=0)

    @property
    def is_success(self) -> bool:
        return self.status == 1
