from enum import Enum


class TransactionKind(str, Enum):
    LEGACY = "legacy"
    ACCESS_LIST = "access_list"
    DYNAMIC_FEE = "dynamic_fee"
    BLOB = "blob"

    @property
    def type_tag(self) -> int:
        return _TYPE_TAGS[self]

    @property
    def is_fee_market(self) -> bool:
        return self is not TransactionKind.LEGACY


_TYPE_TAGS = {
    TransactionKind.LEGACY: 0x0,
    TransactionKind.ACCESS_LIST: 0x1,
    TransactionKind.DYNAMIC_FEE: 0x2,
    TransactionKind.BLOB: 0x3,
}
