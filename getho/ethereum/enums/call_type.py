from enum import Enum


class CallType(str, Enum):
    CALL = "CALL"
    CALLCODE = "CALLCODE"
    DELEGATECALL = "DELEGATECALL"
    STATICCALL = "STATICCALL"
    CREATE = "CREATE"
    CREATE2 = "CREATE2"

    @property
    def is_create(self) -> bool:
        return self in (CallType.CREATE, CallType.CREATE2)
