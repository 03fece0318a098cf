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
# Modified for getho: strict hex handling for JSON-RPC and web3 values,
# lowercase canonical addresses, fixed-width checks for hashes and keys.

from typing import Any, Optional

from eth_utils import is_hexstr, remove_0x_prefix, to_int

ADDRESS_BYTE_LENGTH = 20
HASH_BYTE_LENGTH = 32


def hex_to_dec(hex_string: Any) -> Optional[int]:
    """
    Converts a JSON-RPC quantity to an int.

    Accepts hex strings ("0x5208"), plain ints (web3 already decoded them) and
    raw bytes. None stays None. Anything else raises ValueError.
    """
    if hex_string is None:
        return None
    if isinstance(hex_string, bool):
        raise ValueError(f"Invalid quantity: {hex_string!r}")
    if isinstance(hex_string, int):
        return hex_string
    if isinstance(hex_string, (bytes, bytearray)):
        return int.from_bytes(hex_string, "big")
    if isinstance(hex_string, str):
        if hex_string in ("0x", "0X"):
            return 0
        if not hex_string.startswith(("0x", "0X")):
            # Some nodes (and the callTracer "value" field on old clients) emit decimal strings
            if hex_string.isdigit():
                return int(hex_string)
            raise ValueError(f"Invalid hex string for conversion: {hex_string}")
        try:
            return to_int(hexstr=hex_string)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid hex string for conversion: {hex_string}") from e
    raise ValueError(f"Unsupported quantity type: {type(hex_string)}")


def to_hex_data(data: Any) -> str:
    """
    Normalizes a byte field (calldata, signature component) to lowercase 0x-hex.
    None and empty values become "0x".
    """
    if data is None or data == "":
        return "0x"
    if isinstance(data, (bytes, bytearray)):
        return "0x" + bytes(data).hex()
    if isinstance(data, str):
        if not is_hexstr(data) and data not in ("0x", "0X"):
            raise ValueError(f"Invalid hex data: {data}")
        body = remove_0x_prefix(data).lower()
        if len(body) % 2:
            raise ValueError(f"Hex data has an odd number of digits: {data}")
        return "0x" + body
    raise ValueError(f"Unsupported hex field type: {type(data)}")


def to_fixed_width_hex(value: Any, byte_length: int) -> str:
    """
    Normalizes a fixed-width byte value to lowercase 0x-hex.
    A value of the wrong width raises ValueError; it is never padded or truncated.
    """
    normalized = to_hex_data(value)
    actual = (len(normalized) - 2) // 2
    if actual != byte_length:
        raise ValueError(f"Expected {byte_length} bytes, got {actual}: {normalized}")
    return normalized


def to_normalized_address(address: Any) -> Optional[str]:
    """
    Convert address to lowercase 0x-hex, enforcing 20 bytes.
    None (and the empty string some nodes send for contract creation) stays None.
    """
    if address is None or address == "":
        return None
    return to_fixed_width_hex(address, ADDRESS_BYTE_LENGTH)


def to_normalized_hash(value: Any) -> Optional[str]:
    if value is None:
        return None
    return to_fixed_width_hex(value, HASH_BYTE_LENGTH)


def hex_to_bytes(data: Optional[str]) -> bytes:
    if data is None:
        return b""
    return bytes.fromhex(remove_0x_prefix(to_hex_data(data)))
