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
# Modified for getho: receipt fields needed by the fee ledger, strict widths.

from typing import Any, Dict, Optional

from getho.ethereum.exceptions import DecodeError
from getho.ethereum.models.receipt import EthReceipt
from getho.utils.formatter_utils import hex_to_dec, to_normalized_address, to_normalized_hash


class EthReceiptMapper(object):
    @staticmethod
    def json_dict_to_receipt(json_dict: Optional[Dict[str, Any]]) -> Optional[EthReceipt]:
        # Pending transactions have no receipt yet
        if json_dict is None:
            return None

        try:
            return EthReceipt(
                transaction_hash=to_normalized_hash(json_dict.get("transactionHash")),
                transaction_index=hex_to_dec(json_dict.get("transactionIndex")),
                block_hash=to_normalized_hash(json_dict.get("blockHash")),
                block_number=hex_to_dec(json_dict.get("blockNumber")),
                contract_address=to_normalized_address(json_dict.get("contractAddress")),
                status=hex_to_dec(json_dict.get("status")),
                cumulative_gas_used=hex_to_dec(json_dict.get("cumulativeGasUsed")),
                gas_used=hex_to_dec(json_dict.get("gasUsed")),
                effective_gas_price=hex_to_dec(json_dict.get("effectiveGasPrice")),
                blob_gas_used=hex_to_dec(json_dict.get("blobGasUsed")),
                blob_gas_price=hex_to_dec(json_dict.get("blobGasPrice")),
            )
        except ValueError as e:
            raise DecodeError(f"Malformed receipt: {e}") from e

    @staticmethod
    def receipt_to_dict(receipt: EthReceipt) -> Dict[str, Any]:
        return receipt.model_dump(exclude_none=True)
