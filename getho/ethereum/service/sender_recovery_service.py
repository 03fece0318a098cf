from typing import Any, Dict, List, Optional, Tuple

import rlp
from eth_keys import keys
from eth_keys.constants import SECPK1_N
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak

from getho.ethereum.enums.transaction_kind import TransactionKind
from getho.ethereum.exceptions import DecodeError, SignatureError
from getho.ethereum.mappers.access_list_mapper import EthAccessListMapper
from getho.ethereum.service.transaction_type_service import TransactionTypeService
from getho.utils.formatter_utils import (
    HASH_BYTE_LENGTH,
    hex_to_bytes,
    hex_to_dec,
    to_fixed_width_hex,
    to_normalized_address,
)
from getho.utils.logger_utils import get_logger

logger = get_logger("Sender Recovery Service")

# EIP-155: v = chain_id * 2 + 35 + y_parity
EIP155_V_OFFSET = 35
PRE_EIP155_V_VALUES = (27, 28)


class SenderRecoveryService:
    """
    Recovers the sending address of a signed transaction.

    The signing payload is rebuilt from the decoded fields for the
    transaction's kind, hashed with keccak256 and handed to eth_keys for
    secp256k1 public key recovery. Legacy transactions are bound to their
    chain id through EIP-155 when v says so.
    """

    def __init__(self, access_list_mapper: Optional[EthAccessListMapper] = None):
        self.access_list_mapper = access_list_mapper or EthAccessListMapper()

    def recover_sender(self, raw_tx: Optional[Dict[str, Any]]) -> str:
        if raw_tx is None:
            raise DecodeError("Cannot recover sender of a missing transaction")

        kind = TransactionTypeService.get_transaction_kind(raw_tx.get("type"))
        try:
            r = hex_to_dec(raw_tx.get("r"))
            s = hex_to_dec(raw_tx.get("s"))
        except ValueError as e:
            raise SignatureError(f"Malformed signature values: {e}") from e
        if r is None or s is None:
            raise SignatureError("Transaction carries no signature")
        self._validate_signature_values(r, s)

        if kind is TransactionKind.LEGACY:
            y_parity, chain_id = self._legacy_parity_and_chain_id(raw_tx)
            message_hash = keccak(rlp.encode(self._legacy_payload(raw_tx, chain_id)))
        else:
            y_parity = self._typed_parity(raw_tx)
            payload = self._typed_payload(raw_tx, kind)
            message_hash = keccak(bytes([kind.type_tag]) + rlp.encode(payload))

        sender = self.recover_address(message_hash, y_parity, r, s)
        logger.debug(f"Recovered sender {sender} for {kind.value} transaction {raw_tx.get('hash')}")
        return sender

    @staticmethod
    def recover_address(message_hash: bytes, y_parity: int, r: int, s: int) -> str:
        try:
            signature = keys.Signature(vrs=(y_parity, r, s))
            public_key = signature.recover_public_key_from_msg_hash(message_hash)
        except (BadSignature, ValidationError) as e:
            raise SignatureError(f"Sender recovery failed: {e}") from e
        return "0x" + public_key.to_canonical_address().hex()

    @staticmethod
    def _validate_signature_values(r: int, s: int) -> None:
        if not 0 < r < SECPK1_N:
            raise SignatureError(f"Signature r out of range: {hex(r)}")
        # EIP-2: s must be in the lower half of the curve order
        if not 0 < s <= SECPK1_N // 2:
            raise SignatureError(f"Signature s out of range: {hex(s)}")

    def _legacy_parity_and_chain_id(self, raw_tx: Dict[str, Any]) -> Tuple[int, Optional[int]]:
        v = self._to_int(raw_tx, "v")
        if v is None:
            raise SignatureError("Legacy transaction has no v value")

        if v in PRE_EIP155_V_VALUES:
            return v - PRE_EIP155_V_VALUES[0], None
        if v < EIP155_V_OFFSET:
            raise SignatureError(f"Invalid legacy v value: {v}")

        chain_id = (v - EIP155_V_OFFSET) // 2
        declared_chain_id = self._to_int(raw_tx, "chainId")
        if declared_chain_id is not None and declared_chain_id != chain_id:
            raise SignatureError(f"v value {v} signs for chain {chain_id}, transaction declares chain {declared_chain_id}")
        return (v - EIP155_V_OFFSET) % 2, chain_id

    def _typed_parity(self, raw_tx: Dict[str, Any]) -> int:
        y_parity = self._to_int(raw_tx, "yParity")
        if y_parity is None:
            y_parity = self._to_int(raw_tx, "v")
        if y_parity not in (0, 1):
            raise SignatureError(f"Invalid y parity: {y_parity}")
        return y_parity

    def _legacy_payload(self, raw_tx: Dict[str, Any], chain_id: Optional[int]) -> List[Any]:
        payload = [
            self._require_int(raw_tx, "nonce"),
            self._require_int(raw_tx, "gasPrice"),
            self._require_int(raw_tx, "gas"),
            self._to_bytes(raw_tx),
            self._require_int(raw_tx, "value"),
            self._input_bytes(raw_tx),
        ]
        if chain_id is not None:
            payload.extend([chain_id, 0, 0])
        return payload

    def _typed_payload(self, raw_tx: Dict[str, Any], kind: TransactionKind) -> List[Any]:
        payload: List[Any] = [self._require_int(raw_tx, "chainId"), self._require_int(raw_tx, "nonce")]

        if kind is TransactionKind.ACCESS_LIST:
            payload.append(self._require_int(raw_tx, "gasPrice"))
        else:
            payload.append(self._require_int(raw_tx, "maxPriorityFeePerGas"))
            payload.append(self._require_int(raw_tx, "maxFeePerGas"))

        access_list = self.access_list_mapper.json_list_to_access_list(raw_tx.get("accessList"))
        payload.extend([
            self._require_int(raw_tx, "gas"),
            self._to_bytes(raw_tx),
            self._require_int(raw_tx, "value"),
            self._input_bytes(raw_tx),
            self.access_list_mapper.access_list_to_rlp(access_list),
        ])

        if kind is TransactionKind.BLOB:
            try:
                versioned_hashes = [
                    hex_to_bytes(to_fixed_width_hex(h, HASH_BYTE_LENGTH))
                    for h in raw_tx.get("blobVersionedHashes") or []
                ]
            except ValueError as e:
                raise DecodeError(f"Invalid blob versioned hash: {e}") from e
            payload.extend([self._require_int(raw_tx, "maxFeePerBlobGas"), versioned_hashes])

        return payload

    @staticmethod
    def _to_int(raw_tx: Dict[str, Any], key: str) -> Optional[int]:
        try:
            return hex_to_dec(raw_tx.get(key))
        except ValueError as e:
            raise DecodeError(f"Invalid {key}: {e}") from e

    def _require_int(self, raw_tx: Dict[str, Any], key: str) -> int:
        value = self._to_int(raw_tx, key)
        if value is None:
            raise DecodeError(f"Missing required field {key} for sender recovery")
        return value

    @staticmethod
    def _to_bytes(raw_tx: Dict[str, Any]) -> bytes:
        try:
            to_address = to_normalized_address(raw_tx.get("to"))
        except ValueError as e:
            raise DecodeError(f"Invalid recipient address: {e}") from e
        return hex_to_bytes(to_address) if to_address is not None else b""

    @staticmethod
    def _input_bytes(raw_tx: Dict[str, Any]) -> bytes:
        # web3 names calldata "input", some serializers use "data"
        data = raw_tx.get("input", raw_tx.get("data"))
        try:
            return hex_to_bytes(data)
        except ValueError as e:
            raise DecodeError(f"Invalid input data: {e}") from e
