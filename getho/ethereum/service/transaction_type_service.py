from typing import Any, Tuple

from getho.ethereum.enums.transaction_kind import TransactionKind
from getho.ethereum.exceptions import DecodeError
from getho.ethereum.models.transaction import FEE_MARKET_FEE_FIELDS, LEGACY_FEE_FIELDS
from getho.utils.formatter_utils import hex_to_dec

_KINDS_BY_TAG = {kind.type_tag: kind for kind in TransactionKind}


class TransactionTypeService:
    @staticmethod
    def get_transaction_kind(type_tag: Any) -> TransactionKind:
        """
        Maps an EIP-2718 type tag to its TransactionKind.

        A missing tag means a pre-EIP-2718 legacy object. Unknown tags raise
        DecodeError instead of falling back to legacy, since reading the wrong
        fee fields would make every fee figure wrong.
        """
        if type_tag is None:
            return TransactionKind.LEGACY

        try:
            tag = hex_to_dec(type_tag)
        except ValueError as e:
            raise DecodeError(f"Malformed transaction type tag: {type_tag!r}") from e

        kind = _KINDS_BY_TAG.get(tag)
        if kind is None:
            raise DecodeError(f"Unrecognized transaction type: {hex(tag)}")
        return kind

    @staticmethod
    def fee_fields_for(kind: TransactionKind) -> Tuple[str, ...]:
        if kind is TransactionKind.LEGACY:
            return LEGACY_FEE_FIELDS
        return FEE_MARKET_FEE_FIELDS
