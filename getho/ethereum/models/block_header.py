from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EthBlockHeader(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = "block_header"
    number: Optional[int] = Field(default=None, description="Block number, must be >= 0")
    hash: str | None = None
    timestamp: int | None = None
    gas_limit: int | None = None
    gas_used: int | None = None
    # Absent before the London fee-market upgrade
    base_fee_per_gas: int | None = Field(default=None, ge=0)
    blob_gas_used: int | None = None
    excess_blob_gas: int | None = Field(default=None, ge=0)

    @field_validator("number")
    @classmethod
    def validate_block_number(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError(f"Block number must be greater than or equal to 0, got {v}")
        return v
