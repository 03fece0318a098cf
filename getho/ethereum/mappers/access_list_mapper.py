from typing import Any, Dict, Iterable, List, Optional, Tuple

from getho.ethereum.exceptions import DecodeError
from getho.ethereum.models.access_list import EthAccessListEntry
from getho.utils.formatter_utils import HASH_BYTE_LENGTH, hex_to_bytes, to_fixed_width_hex, to_normalized_address


class EthAccessListMapper(object):
    @staticmethod
    def json_list_to_access_list(raw_access_list: Optional[Iterable[Dict[str, Any]]]) -> Tuple[EthAccessListEntry, ...]:
        if not raw_access_list:
            return ()

        entries = []
        for index, raw_entry in enumerate(raw_access_list):
            try:
                address = to_normalized_address(raw_entry.get("address"))
                storage_keys = tuple(
                    to_fixed_width_hex(key, HASH_BYTE_LENGTH) for key in raw_entry.get("storageKeys") or []
                )
            except ValueError as e:
                raise DecodeError(f"Invalid access list entry {index}: {e}") from e

            if address is None:
                raise DecodeError(f"Access list entry {index} has no address")
            entries.append(EthAccessListEntry(address=address, storage_keys=storage_keys))

        return tuple(entries)

    @staticmethod
    def access_list_to_rlp(access_list: Iterable[EthAccessListEntry]) -> List[List[Any]]:
        return [
            [hex_to_bytes(entry.address), [hex_to_bytes(key) for key in entry.storage_keys]]
            for entry in access_list
        ]

    @staticmethod
    def access_list_to_dict(access_list: Iterable[EthAccessListEntry]) -> List[Dict[str, Any]]:
        return [{"address": entry.address, "storageKeys": list(entry.storage_keys)} for entry in access_list]
