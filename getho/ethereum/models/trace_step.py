from pydantic import BaseModel, ConfigDict, Field

from getho.ethereum.enums.call_type import CallType


class EthTraceStep(BaseModel):
    """
    One executed instruction. The frame-opening fields are only meaningful on
    the first step of a new call frame (the step whose depth went up by one).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    op: str
    depth: int
    gas: int = Field(ge=0)
    gas_cost: int = Field(default=0, ge=0)
    pc: int | None = None
    error: str | None = None

    call_type: CallType | None = None
    to_address: str | None = None
    value: int | None = Field(default=None, ge=0)
    gas_limit: int | None = Field(default=None, ge=0)


class EthTraceRoot(BaseModel):
    """Top-level frame context taken from the transaction itself."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_address: str | None = None
    to_address: str | None = None
    value: int = Field(default=0, ge=0)

    @property
    def call_type(self) -> CallType:
        return CallType.CALL if self.to_address is not None else CallType.CREATE
