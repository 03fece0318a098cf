import pytest

from getho.config.configs import configs
from getho.ethereum.enums.gas_component_label import GasComponentLabel
from getho.ethereum.enums.transaction_kind import TransactionKind
from getho.ethereum.models.block_header import EthBlockHeader
from getho.ethereum.models.receipt import EthReceipt
from getho.ethereum.models.transaction import EthTransaction
from getho.ethereum.service.fee_ledger_service import (
    NOTE_BLOB_GAS_FROM_HASHES,
    NOTE_BLOB_PRICE_FROM_HEADER,
    NOTE_GAS_USED_UPPER_BOUND,
    NOTE_HEADER_MISMATCH,
    NOTE_HEADER_UNAVAILABLE,
    NOTE_NO_BASE_FEE,
    NOTE_RECEIPT_MISMATCH,
    NOTE_RECEIPT_NO_EFFECTIVE_PRICE,
    NOTE_RECEIPT_NO_EFFECTIVE_PRICE_FEE_MARKET,
    NOTE_RECEIPT_UNAVAILABLE,
    NOTE_RECEIPT_UNAVAILABLE_FEE_MARKET,
    FeeLedgerService,
    fake_exponential,
)

TX_HASH = "0x" + "aa" * 32
BLOCK_HASH = "0x" + "bb" * 32
GWEI = 10**9


def transaction(kind=TransactionKind.DYNAMIC_FEE, **overrides):
    fields = {
        "hash": TX_HASH,
        "nonce": 0,
        "block_hash": BLOCK_HASH,
        "block_number": 100,
        "from_address": "0x" + "11" * 20,
        "to_address": "0x" + "22" * 20,
        "value": 10**18,
        "gas_limit": 60000,
        "transaction_type": kind,
        "estimated_intrinsic_gas": 21000,
    }
    if kind is TransactionKind.LEGACY:
        fields["gas_price"] = 20 * GWEI
    else:
        fields["max_fee_per_gas"] = 30 * GWEI
        fields["max_priority_fee_per_gas"] = 2 * GWEI
    if kind is TransactionKind.BLOB:
        fields["max_fee_per_blob_gas"] = fields["blob_gas_fee_cap"] = 10 * GWEI
        fields["blob_versioned_hashes"] = ("0x01" + "cc" * 31,) * 3
    fields.update(overrides)
    return EthTransaction(**fields)


def receipt(**overrides):
    fields = {
        "transaction_hash": TX_HASH,
        "block_hash": BLOCK_HASH,
        "block_number": 100,
        "status": 1,
        "gas_used": 50000,
        "effective_gas_price": 12 * GWEI,
    }
    fields.update(overrides)
    return EthReceipt(**fields)


def header(**overrides):
    fields = {"number": 100, "hash": BLOCK_HASH, "base_fee_per_gas": 10 * GWEI}
    fields.update(overrides)
    return EthBlockHeader(**fields)


@pytest.fixture
def service():
    return FeeLedgerService(blob_base_fee_update_fraction=3338477, min_blob_base_fee=1)


def test_legacy_transfer_total_fee(service):
    tx = transaction(TransactionKind.LEGACY, gas_limit=21000)

    analysis = service.analyze(tx, receipt(gas_used=21000, effective_gas_price=20 * GWEI))

    assert analysis.total_fee_paid == 420000000000000
    assert analysis.total_fee_paid == analysis.effective_gas_price * analysis.gas_used
    assert not analysis.gas_used_is_upper_bound
    assert analysis.max_fee_cost == 20 * GWEI * 21000


def test_dynamic_fee_split(service):
    analysis = service.analyze(transaction(), receipt(), header())

    assert analysis.base_fee_burnt == 500000000000000
    assert analysis.total_fee_paid == 600000000000000
    assert analysis.priority_fee == 100000000000000
    assert analysis.priority_fee_per_gas == 2 * GWEI
    assert analysis.total_execution_and_blob == analysis.total_fee_paid
    assert [(c.label, c.value) for c in analysis.components] == [
        (GasComponentLabel.BASE, 500000000000000),
        (GasComponentLabel.PRIORITY, 100000000000000),
    ]
    assert analysis.notes == ()
    assert analysis.block_hash == BLOCK_HASH
    assert analysis.status == 1


def test_pending_fee_market_transaction(service):
    analysis = service.analyze(transaction(block_hash=None, block_number=None))

    assert analysis.effective_gas_price is None
    assert analysis.total_fee_paid is None
    assert analysis.base_fee_burnt is None
    assert analysis.priority_fee is None
    assert analysis.components == ()
    assert analysis.gas_used == 60000
    assert analysis.gas_used_is_upper_bound
    assert analysis.max_fee_cost == 30 * GWEI * 60000
    assert NOTE_RECEIPT_UNAVAILABLE_FEE_MARKET in analysis.notes
    assert NOTE_GAS_USED_UPPER_BOUND in analysis.notes
    assert NOTE_HEADER_UNAVAILABLE in analysis.notes


def test_pending_legacy_transaction_uses_declared_price(service):
    analysis = service.analyze(transaction(TransactionKind.LEGACY))

    assert analysis.effective_gas_price == 20 * GWEI
    assert analysis.total_fee_paid == 20 * GWEI * 60000
    assert NOTE_RECEIPT_UNAVAILABLE in analysis.notes


def test_legacy_receipt_without_effective_price(service):
    analysis = service.analyze(transaction(TransactionKind.LEGACY), receipt(effective_gas_price=None), header())

    assert analysis.effective_gas_price == 20 * GWEI
    assert analysis.total_fee_paid == 20 * GWEI * 50000
    assert NOTE_RECEIPT_NO_EFFECTIVE_PRICE in analysis.notes
    assert NOTE_RECEIPT_UNAVAILABLE not in analysis.notes


def test_fee_market_receipt_without_effective_price(service):
    analysis = service.analyze(transaction(), receipt(effective_gas_price=None), header())

    assert analysis.effective_gas_price is None
    assert analysis.total_fee_paid is None
    assert NOTE_RECEIPT_NO_EFFECTIVE_PRICE_FEE_MARKET in analysis.notes
    assert NOTE_RECEIPT_UNAVAILABLE_FEE_MARKET not in analysis.notes


def test_pre_london_block(service):
    analysis = service.analyze(
        transaction(TransactionKind.LEGACY), receipt(effective_gas_price=20 * GWEI), header(base_fee_per_gas=None)
    )

    assert analysis.base_fee_burnt is None
    assert analysis.priority_fee is None
    assert analysis.total_fee_paid == 20 * GWEI * 50000
    assert NOTE_NO_BASE_FEE in analysis.notes


def test_negative_priority_is_reported_as_zero_with_note(service):
    analysis = service.analyze(transaction(), receipt(effective_gas_price=9 * GWEI), header())

    assert analysis.priority_fee == 0
    assert analysis.priority_fee_per_gas == 0
    assert any("-50000000000000" in note for note in analysis.notes)
    assert any("-1000000000" in note for note in analysis.notes)


def test_mismatched_receipt_is_ignored(service):
    analysis = service.analyze(transaction(), receipt(transaction_hash="0x" + "ff" * 32), header())

    assert NOTE_RECEIPT_MISMATCH in analysis.notes
    assert analysis.effective_gas_price is None
    assert analysis.gas_used_is_upper_bound


def test_mismatched_header_is_ignored(service):
    analysis = service.analyze(transaction(), receipt(), header(number=101))

    assert NOTE_HEADER_MISMATCH in analysis.notes
    assert analysis.base_fee_per_gas is None
    assert analysis.total_fee_paid == 600000000000000


def test_blob_fees_from_receipt(service):
    tx = transaction(TransactionKind.BLOB)

    analysis = service.analyze(tx, receipt(blob_gas_used=3 * 131072, blob_gas_price=5), header())

    assert analysis.blob_gas_used == 3 * 131072
    assert analysis.total_blob_fee_paid == 5 * 3 * 131072
    assert analysis.total_execution_and_blob == analysis.total_fee_paid + analysis.total_blob_fee_paid
    assert analysis.components[-1].label is GasComponentLabel.BLOB
    assert analysis.max_fee_per_blob_gas == 10 * GWEI


def test_blob_fees_derived_from_hashes_and_header(service):
    tx = transaction(TransactionKind.BLOB)

    analysis = service.analyze(tx, receipt(), header(excess_blob_gas=0))

    assert analysis.blob_gas_used == 3 * 131072
    assert analysis.blob_gas_price == 1
    assert NOTE_BLOB_GAS_FROM_HASHES in analysis.notes
    assert NOTE_BLOB_PRICE_FROM_HEADER in analysis.notes


def test_blob_total_unknown_without_price(service):
    analysis = service.analyze(transaction(TransactionKind.BLOB), receipt())

    assert analysis.total_blob_fee_paid is None
    assert analysis.total_execution_and_blob is None
    # No header: no base fee, so no split at all
    assert analysis.components == ()


def test_non_blob_transaction_has_no_blob_fields(service):
    analysis = service.analyze(transaction(), receipt(), header(excess_blob_gas=10**7))

    assert analysis.blob_gas_used is None
    assert analysis.blob_gas_price is None
    assert analysis.total_blob_fee_paid is None


def test_fake_exponential():
    assert fake_exponential(1, 0, 3338477) == 1
    assert fake_exponential(1, 3338477, 3338477) == 2
    assert fake_exponential(1, 10 * 3338477, 3338477) == 22026


def test_blob_gas_price_from_excess(service):
    assert service.blob_gas_price_from_excess(0) == 1
    assert service.blob_gas_price_from_excess(3338477 * 20) > service.blob_gas_price_from_excess(3338477 * 10)


def test_explicit_zero_blob_parameters_are_kept():
    service = FeeLedgerService(blob_base_fee_update_fraction=3338477, min_blob_base_fee=0)

    assert service.min_blob_base_fee == 0
    assert service.blob_gas_price_from_excess(10**6) == 0


def test_blob_parameters_default_to_configs():
    service = FeeLedgerService()

    assert service.blob_base_fee_update_fraction == configs.fees.blob_base_fee_update_fraction
    assert service.min_blob_base_fee == configs.fees.min_blob_base_fee
