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
# Modified for getho: header-only mapping, base fee left null before London.

from typing import Any, Dict, Optional

from getho.ethereum.exceptions import DecodeError
from getho.ethereum.models.block_header import EthBlockHeader
from getho.utils.formatter_utils import hex_to_dec, to_normalized_hash


class EthBlockHeaderMapper(object):
    @staticmethod
    def json_dict_to_block_header(json_dict: Optional[Dict[str, Any]]) -> Optional[EthBlockHeader]:
        if json_dict is None:
            return None

        try:
            return EthBlockHeader(
                number=hex_to_dec(json_dict.get("number")),
                hash=to_normalized_hash(json_dict.get("hash")),
                timestamp=hex_to_dec(json_dict.get("timestamp")),
                gas_limit=hex_to_dec(json_dict.get("gasLimit")),
                gas_used=hex_to_dec(json_dict.get("gasUsed")),
                base_fee_per_gas=hex_to_dec(json_dict.get("baseFeePerGas")),
                blob_gas_used=hex_to_dec(json_dict.get("blobGasUsed")),
                excess_blob_gas=hex_to_dec(json_dict.get("excessBlobGas")),
            )
        except ValueError as e:
            raise DecodeError(f"Malformed block header: {e}") from e

    @staticmethod
    def block_header_to_dict(header: EthBlockHeader) -> Dict[str, Any]:
        return header.model_dump(exclude_none=True)
