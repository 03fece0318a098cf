# MIT License
#
# Copyright (c) 2018 Evgeny Medvedev, evge.medvedev@gmail.com
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#
# Modified for getho: kind-driven fee fields, receipt merge, sender recovery,
# intrinsic gas estimation and strict decode errors.

from typing import Any, Dict, Optional

from pydantic import ValidationError

from getho.ethereum.enums.transaction_kind import TransactionKind
from getho.ethereum.exceptions import DecodeError
from getho.ethereum.mappers.access_list_mapper import EthAccessListMapper
from getho.ethereum.models.receipt import EthReceipt
from getho.ethereum.models.transaction import EthTransaction
from getho.ethereum.service.intrinsic_gas_service import IntrinsicGasService
from getho.ethereum.service.sender_recovery_service import SenderRecoveryService
from getho.ethereum.service.transaction_type_service import TransactionTypeService
from getho.utils.formatter_utils import (
    HASH_BYTE_LENGTH,
    hex_to_bytes,
    hex_to_dec,
    to_fixed_width_hex,
    to_hex_data,
    to_normalized_address,
    to_normalized_hash,
)
from getho.utils.logger_utils import get_logger

logger = get_logger("Transaction Mapper")


class EthTransactionMapper(object):
    def __init__(
        self,
        access_list_mapper: Optional[EthAccessListMapper] = None,
        sender_recovery_service: Optional[SenderRecoveryService] = None,
    ):
        self.access_list_mapper = access_list_mapper or EthAccessListMapper()
        self.sender_recovery_service = sender_recovery_service or SenderRecoveryService(self.access_list_mapper)

    def json_dict_to_transaction(
        self,
        json_dict: Optional[Dict[str, Any]],
        receipt: Optional[EthReceipt] = None,
        sender: Optional[str] = None,
    ) -> EthTransaction:
        """
        Decodes a JSON-RPC (or web3) transaction object into an EthTransaction.

        Args:
            json_dict: Raw transaction as returned by eth_getTransactionByHash.
            receipt: Receipt of the transaction, None while it is pending.
            sender: Already recovered sender. When omitted it is recovered
                from the signature.

        Raises:
            DecodeError: missing transaction, unrecognized type, missing
                required field or wrong-width hash/address.
            SignatureError: the sender had to be recovered and recovery failed.
        """
        if json_dict is None:
            raise DecodeError("Transaction cannot be None")

        kind = TransactionTypeService.get_transaction_kind(json_dict.get("type"))

        if sender is None:
            sender = self.sender_recovery_service.recover_sender(json_dict)

        try:
            fields = self._base_fields(json_dict, sender)
        except ValueError as e:
            raise DecodeError(f"Malformed transaction {json_dict.get('hash')}: {e}") from e

        receipt = self._checked_receipt(fields["hash"], receipt)

        fields["transaction_type"] = kind
        fields["access_list"] = self.access_list_mapper.json_list_to_access_list(json_dict.get("accessList"))
        fields.update(self._fee_fields(json_dict, kind, receipt))

        if kind is TransactionKind.BLOB:
            fields.update(self._blob_fields(json_dict, receipt))

        if receipt is not None:
            fields.update(self._receipt_fields(receipt))

        # Last: depends on the final input and access list
        fields["estimated_intrinsic_gas"] = IntrinsicGasService.estimate_intrinsic_gas(
            kind,
            hex_to_bytes(fields["input"]),
            fields["access_list"],
            is_contract_creation=fields["to_address"] is None,
        )

        try:
            transaction = EthTransaction(**fields)
        except ValidationError as e:
            raise DecodeError(f"Invalid transaction {fields['hash']}: {e}") from e

        logger.debug(f"Decoded {kind.value} transaction {transaction.hash}")
        return transaction

    @staticmethod
    def _base_fields(json_dict: Dict[str, Any], sender: str) -> Dict[str, Any]:
        tx_hash = to_normalized_hash(json_dict.get("hash"))
        if tx_hash is None:
            raise ValueError("hash is required")
        from_address = to_normalized_address(sender)
        if from_address is None:
            raise ValueError("sender is required")

        fields = {
            "hash": tx_hash,
            "nonce": _require(json_dict, "nonce"),
            "block_hash": to_normalized_hash(json_dict.get("blockHash")),
            "block_number": hex_to_dec(json_dict.get("blockNumber")),
            "transaction_index": hex_to_dec(json_dict.get("transactionIndex")),
            "from_address": from_address,
            "to_address": to_normalized_address(json_dict.get("to")),
            "value": hex_to_dec(json_dict.get("value")) or 0,
            "gas_limit": _require(json_dict, "gas"),
            "chain_id": hex_to_dec(json_dict.get("chainId")) or 0,
            "input": to_hex_data(json_dict.get("input", json_dict.get("data"))),
        }
        return fields

    @staticmethod
    def _checked_receipt(tx_hash: str, receipt: Optional[EthReceipt]) -> Optional[EthReceipt]:
        # Same rule as FeeLedgerService, so both models see the same receipt
        if receipt is not None and receipt.transaction_hash is not None and receipt.transaction_hash != tx_hash:
            logger.warning(f"Ignoring receipt for {receipt.transaction_hash} passed with transaction {tx_hash}")
            return None
        return receipt

    @staticmethod
    def _fee_fields(json_dict: Dict[str, Any], kind: TransactionKind, receipt: Optional[EthReceipt]) -> Dict[str, Any]:
        receipt_price = receipt.effective_gas_price if receipt is not None else None

        if kind is TransactionKind.LEGACY:
            gas_price = _require(json_dict, "gasPrice")
            return {
                "gas_price": gas_price,
                "effective_gas_price": receipt_price if receipt_price is not None else gas_price,
            }

        if kind is TransactionKind.ACCESS_LIST:
            # EIP-2930 gasPrice is both the fee cap and the tip cap
            gas_price = _require(json_dict, "gasPrice")
            max_fee_per_gas = max_priority_fee_per_gas = gas_price
        else:
            max_fee_per_gas = _require(json_dict, "maxFeePerGas")
            max_priority_fee_per_gas = _require(json_dict, "maxPriorityFeePerGas")

        # Only knowable after inclusion
        return {
            "max_fee_per_gas": max_fee_per_gas,
            "max_priority_fee_per_gas": max_priority_fee_per_gas,
            "effective_gas_price": receipt_price,
        }

    @staticmethod
    def _blob_fields(json_dict: Dict[str, Any], receipt: Optional[EthReceipt]) -> Dict[str, Any]:
        max_fee_per_blob_gas = _require(json_dict, "maxFeePerBlobGas")
        try:
            versioned_hashes = tuple(
                to_fixed_width_hex(h, HASH_BYTE_LENGTH) for h in json_dict.get("blobVersionedHashes") or []
            )
        except ValueError as e:
            raise DecodeError(f"Invalid blob versioned hash: {e}") from e

        return {
            "max_fee_per_blob_gas": max_fee_per_blob_gas,
            "blob_gas_fee_cap": max_fee_per_blob_gas,
            "blob_versioned_hashes": versioned_hashes,
            "blob_gas_used": receipt.blob_gas_used if receipt is not None else None,
        }

    @staticmethod
    def _receipt_fields(receipt: EthReceipt) -> Dict[str, Any]:
        fields = {
            "status": receipt.status,
            "contract_address": receipt.contract_address,
        }
        # A receipt always knows where the transaction landed
        for name in ("block_hash", "block_number", "transaction_index"):
            value = getattr(receipt, name)
            if value is not None:
                fields[name] = value
        return fields

    @staticmethod
    def transaction_to_dict(transaction: EthTransaction) -> Dict[str, Any]:
        return transaction.model_dump(mode="json", exclude_none=True)


def _require(json_dict: Dict[str, Any], key: str) -> int:
    try:
        value = hex_to_dec(json_dict.get(key))
    except ValueError as e:
        raise DecodeError(f"Invalid {key}: {e}") from e
    if value is None:
        raise DecodeError(f"Missing required field {key}")
    return value
