from typing import Any, Dict, List, Optional

from getho.config.configs import configs
from getho.constants.gas_constants import GAS_PER_BLOB
from getho.ethereum.enums.gas_component_label import GasComponentLabel
from getho.ethereum.enums.transaction_kind import TransactionKind
from getho.ethereum.models.block_header import EthBlockHeader
from getho.ethereum.models.gas_analysis import EthGasAnalysis, EthGasComponent
from getho.ethereum.models.receipt import EthReceipt
from getho.ethereum.models.transaction import EthTransaction
from getho.utils.logger_utils import get_logger

logger = get_logger("Fee Ledger Service")

NOTE_RECEIPT_UNAVAILABLE = "receipt unavailable, using declared gas price"
NOTE_RECEIPT_UNAVAILABLE_FEE_MARKET = "receipt unavailable: effective gas price unknown until inclusion"
NOTE_RECEIPT_NO_EFFECTIVE_PRICE = "receipt has no effective gas price, using declared gas price"
NOTE_RECEIPT_NO_EFFECTIVE_PRICE_FEE_MARKET = "receipt has no effective gas price: effective gas price unknown"
NOTE_RECEIPT_MISMATCH = "receipt belongs to another transaction, ignored"
NOTE_GAS_USED_UPPER_BOUND = "gas used unknown, using gas limit as an upper bound"
NOTE_HEADER_UNAVAILABLE = "block header unavailable: base fee unknown"
NOTE_HEADER_MISMATCH = "block header does not match the transaction's block, ignored"
NOTE_NO_BASE_FEE = "no base fee: pre-fee-market block"
NOTE_NEGATIVE_PRIORITY = "inconsistent input: effective gas price below base fee, priority fee of {value} wei reported as 0"
NOTE_NEGATIVE_PRIORITY_PER_GAS = "inconsistent input: priority fee per gas of {value} wei reported as 0"
NOTE_BLOB_GAS_FROM_HASHES = "blob gas used derived from blob count"
NOTE_BLOB_GAS_UNAVAILABLE = "blob gas used unavailable"
NOTE_BLOB_PRICE_FROM_HEADER = "blob gas price derived from header excess blob gas"
NOTE_BLOB_PRICE_UNAVAILABLE = "blob gas price unavailable"


def fake_exponential(factor: int, numerator: int, denominator: int) -> int:
    """Integer approximation of factor * e ** (numerator / denominator), EIP-4844."""
    i = 1
    output = 0
    numerator_accumulator = factor * denominator
    while numerator_accumulator > 0:
        output += numerator_accumulator
        numerator_accumulator = (numerator_accumulator * numerator) // (denominator * i)
        i += 1
    return output // denominator


class FeeLedgerService:
    """
    Builds the fee ledger (EthGasAnalysis) of a transaction.

    Missing receipt or header is an expected state for an inspection tool
    (pending transaction, pre-London block), so analyze() never raises on
    them. Each degraded input leaves the dependent totals as None and adds a
    note explaining why. All arithmetic is integer wei.
    """

    def __init__(self, blob_base_fee_update_fraction: Optional[int] = None, min_blob_base_fee: Optional[int] = None):
        if blob_base_fee_update_fraction is None:
            blob_base_fee_update_fraction = configs.fees.blob_base_fee_update_fraction
        if min_blob_base_fee is None:
            min_blob_base_fee = configs.fees.min_blob_base_fee
        self.blob_base_fee_update_fraction = blob_base_fee_update_fraction
        self.min_blob_base_fee = min_blob_base_fee

    def analyze(
        self,
        transaction: EthTransaction,
        receipt: Optional[EthReceipt] = None,
        header: Optional[EthBlockHeader] = None,
    ) -> EthGasAnalysis:
        notes: List[str] = []

        receipt = self._checked_receipt(transaction, receipt, notes)
        header = self._checked_header(transaction, receipt, header, notes)

        effective_gas_price = self._effective_gas_price(transaction, receipt, notes)

        if receipt is not None and receipt.gas_used is not None:
            gas_used = receipt.gas_used
            gas_used_is_upper_bound = False
        else:
            gas_used = transaction.gas_limit
            gas_used_is_upper_bound = True
            notes.append(NOTE_GAS_USED_UPPER_BOUND)

        total_fee_paid = _mul(effective_gas_price, gas_used)

        base_fee_per_gas = None
        if header is None:
            notes.append(NOTE_HEADER_UNAVAILABLE)
        elif header.base_fee_per_gas is None:
            notes.append(NOTE_NO_BASE_FEE)
        else:
            base_fee_per_gas = header.base_fee_per_gas
        base_fee_burnt = _mul(base_fee_per_gas, gas_used)

        priority_fee = self._non_negative(_sub(total_fee_paid, base_fee_burnt), NOTE_NEGATIVE_PRIORITY, notes)
        priority_fee_per_gas = self._non_negative(
            _sub(effective_gas_price, base_fee_per_gas), NOTE_NEGATIVE_PRIORITY_PER_GAS, notes
        )

        blob_fields = self._blob_fields(transaction, receipt, header, notes)

        if total_fee_paid is None:
            total_execution_and_blob = None
        elif transaction.transaction_type is TransactionKind.BLOB:
            total_execution_and_blob = _add(total_fee_paid, blob_fields["total_blob_fee_paid"])
        else:
            total_execution_and_blob = total_fee_paid

        fee_cap = transaction.gas_price if transaction.gas_price is not None else transaction.max_fee_per_gas

        components = [
            EthGasComponent(label=label, value=value)
            for label, value in (
                (GasComponentLabel.BASE, base_fee_burnt),
                (GasComponentLabel.PRIORITY, priority_fee),
                (GasComponentLabel.BLOB, blob_fields["total_blob_fee_paid"]),
            )
            if value is not None
        ]

        for note in notes:
            logger.debug(f"{transaction.hash}: {note}")

        return EthGasAnalysis(
            transaction_hash=transaction.hash,
            block_hash=self._first(receipt, header, transaction, receipt_attr="block_hash", header_attr="hash"),
            block_number=self._first(receipt, header, transaction, receipt_attr="block_number", header_attr="number"),
            transaction_type=transaction.transaction_type,
            status=receipt.status if receipt is not None else None,
            gas_used=gas_used,
            gas_limit=transaction.gas_limit,
            gas_used_is_upper_bound=gas_used_is_upper_bound,
            base_fee_per_gas=base_fee_per_gas,
            gas_price=transaction.gas_price,
            max_fee_per_gas=transaction.max_fee_per_gas,
            max_priority_fee_per_gas=transaction.max_priority_fee_per_gas,
            max_fee_per_blob_gas=transaction.max_fee_per_blob_gas,
            effective_gas_price=effective_gas_price,
            priority_fee_per_gas=priority_fee_per_gas,
            total_fee_paid=total_fee_paid,
            base_fee_burnt=base_fee_burnt,
            priority_fee=priority_fee,
            max_fee_cost=_mul(fee_cap, transaction.gas_limit),
            total_execution_and_blob=total_execution_and_blob,
            components=tuple(components),
            notes=tuple(notes),
            **blob_fields,
        )

    def blob_gas_price_from_excess(self, excess_blob_gas: int) -> int:
        return fake_exponential(self.min_blob_base_fee, excess_blob_gas, self.blob_base_fee_update_fraction)

    @staticmethod
    def _checked_receipt(
        transaction: EthTransaction, receipt: Optional[EthReceipt], notes: List[str]
    ) -> Optional[EthReceipt]:
        if receipt is None:
            return None
        if receipt.transaction_hash is not None and receipt.transaction_hash != transaction.hash:
            logger.warning(f"Receipt for {receipt.transaction_hash} passed with transaction {transaction.hash}")
            notes.append(NOTE_RECEIPT_MISMATCH)
            return None
        return receipt

    @staticmethod
    def _checked_header(
        transaction: EthTransaction,
        receipt: Optional[EthReceipt],
        header: Optional[EthBlockHeader],
        notes: List[str],
    ) -> Optional[EthBlockHeader]:
        if header is None:
            return None

        block_hash = receipt.block_hash if receipt is not None else None
        block_number = receipt.block_number if receipt is not None else None
        block_hash = block_hash or transaction.block_hash
        block_number = block_number if block_number is not None else transaction.block_number

        if (block_hash is not None and header.hash is not None and header.hash != block_hash) or (
            block_number is not None and header.number is not None and header.number != block_number
        ):
            logger.warning(f"Header {header.number} does not match block of transaction {transaction.hash}")
            notes.append(NOTE_HEADER_MISMATCH)
            return None
        return header

    @staticmethod
    def _effective_gas_price(
        transaction: EthTransaction, receipt: Optional[EthReceipt], notes: List[str]
    ) -> Optional[int]:
        if receipt is not None and receipt.effective_gas_price is not None:
            return receipt.effective_gas_price
        if not transaction.transaction_type.is_fee_market:
            notes.append(NOTE_RECEIPT_UNAVAILABLE if receipt is None else NOTE_RECEIPT_NO_EFFECTIVE_PRICE)
            return transaction.gas_price
        if receipt is None:
            notes.append(NOTE_RECEIPT_UNAVAILABLE_FEE_MARKET)
        else:
            notes.append(NOTE_RECEIPT_NO_EFFECTIVE_PRICE_FEE_MARKET)
        return None

    def _blob_fields(
        self,
        transaction: EthTransaction,
        receipt: Optional[EthReceipt],
        header: Optional[EthBlockHeader],
        notes: List[str],
    ) -> Dict[str, Any]:
        if transaction.transaction_type is not TransactionKind.BLOB:
            return {"blob_gas_used": None, "blob_gas_price": None, "total_blob_fee_paid": None}

        blob_gas_used = receipt.blob_gas_used if receipt is not None else None
        if blob_gas_used is None:
            blob_gas_used = transaction.blob_gas_used
        if blob_gas_used is None and transaction.blob_versioned_hashes:
            blob_gas_used = len(transaction.blob_versioned_hashes) * GAS_PER_BLOB
            notes.append(NOTE_BLOB_GAS_FROM_HASHES)
        if blob_gas_used is None:
            notes.append(NOTE_BLOB_GAS_UNAVAILABLE)

        blob_gas_price = receipt.blob_gas_price if receipt is not None else None
        if blob_gas_price is None and header is not None and header.excess_blob_gas is not None:
            blob_gas_price = self.blob_gas_price_from_excess(header.excess_blob_gas)
            notes.append(NOTE_BLOB_PRICE_FROM_HEADER)
        if blob_gas_price is None:
            notes.append(NOTE_BLOB_PRICE_UNAVAILABLE)

        return {
            "blob_gas_used": blob_gas_used,
            "blob_gas_price": blob_gas_price,
            "total_blob_fee_paid": _mul(blob_gas_price, blob_gas_used),
        }

    @staticmethod
    def _non_negative(value: Optional[int], note: str, notes: List[str]) -> Optional[int]:
        if value is not None and value < 0:
            notes.append(note.format(value=value))
            return 0
        return value

    @staticmethod
    def _first(
        receipt: Optional[EthReceipt],
        header: Optional[EthBlockHeader],
        transaction: EthTransaction,
        receipt_attr: str,
        header_attr: str,
    ) -> Any:
        for value in (
            getattr(receipt, receipt_attr, None),
            getattr(transaction, receipt_attr),
            getattr(header, header_attr, None),
        ):
            if value is not None:
                return value
        return None


def _mul(a: Optional[int], b: Optional[int]) -> Optional[int]:
    if a is None or b is None:
        return None
    return a * b


def _add(a: Optional[int], b: Optional[int]) -> Optional[int]:
    if a is None or b is None:
        return None
    return a + b


def _sub(a: Optional[int], b: Optional[int]) -> Optional[int]:
    if a is None or b is None:
        return None
    return a - b
