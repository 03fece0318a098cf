from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class EthAccessListEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    address: str
    # Order is significant and duplicates are distinct requests
    storage_keys: Tuple[str, ...] = Field(default_factory=tuple)
