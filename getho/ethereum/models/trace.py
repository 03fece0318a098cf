from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from getho.ethereum.enums.call_type import CallType


class OpcodeStats(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total: int = Field(default=0, ge=0)
    calls: int = Field(default=0, ge=0)
    creates: int = Field(default=0, ge=0)
    sloads: int = Field(default=0, ge=0)
    sstores: int = Field(default=0, ge=0)
    logs: int = Field(default=0, ge=0)
    reverts: int = Field(default=0, ge=0)
    invalids: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_total(self) -> "OpcodeStats":
        classified = self.calls + self.creates + self.sloads + self.sstores + self.logs + self.reverts + self.invalids
        if classified > self.total:
            raise ValueError(f"Classified opcode count {classified} exceeds total {self.total}")
        return self


class EthCallFrame(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    call_type: CallType
    from_address: str | None = None
    to_address: str | None = None
    value: int = Field(default=0, ge=0)
    depth: int = Field(ge=0)
    gas_limit: int = Field(ge=0)
    gas_used: int = Field(ge=0)
    opcodes: OpcodeStats = Field(default_factory=OpcodeStats)
    error: str | None = None
    # Child indexes from the root, e.g. (0, 2) is the third call made by the first subcall
    trace_address: Tuple[int, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def validate_gas(self) -> "EthCallFrame":
        if self.gas_used > self.gas_limit:
            raise ValueError(f"gas_used {self.gas_used} exceeds gas_limit {self.gas_limit}")
        if self.depth != len(self.trace_address):
            raise ValueError(f"depth {self.depth} does not match trace_address {self.trace_address}")
        return self


class EthTrace(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = "trace"
    transaction_hash: str
    total_gas_used: int = Field(ge=0)
    # Depth-first pre-order: a parent always precedes its children
    frames: Tuple[EthCallFrame, ...] = Field(default_factory=tuple)
    error: str | None = None

    @property
    def root(self) -> EthCallFrame:
        return self.frames[0]

    def children_of(self, frame: EthCallFrame) -> List[EthCallFrame]:
        depth = len(frame.trace_address) + 1
        return [
            f for f in self.frames
            if len(f.trace_address) == depth and f.trace_address[:-1] == frame.trace_address
        ]
