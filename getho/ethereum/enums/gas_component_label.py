from enum import Enum


class GasComponentLabel(str, Enum):
    BASE = "base"
    PRIORITY = "priority"
    BLOB = "blob"
