import pytest

from getho.ethereum.exceptions import DecodeError
from getho.ethereum.mappers.access_list_mapper import EthAccessListMapper

ADDRESS = "0x" + "ab" * 20
KEY_1 = "0x" + "00" * 31 + "01"
KEY_2 = "0x" + "00" * 31 + "02"


@pytest.fixture
def mapper():
    return EthAccessListMapper()


def test_empty_access_list(mapper):
    assert mapper.json_list_to_access_list(None) == ()
    assert mapper.json_list_to_access_list([]) == ()


def test_preserves_order_and_duplicates(mapper):
    raw = [
        {"address": ADDRESS.upper().replace("0X", "0x"), "storageKeys": [KEY_2, KEY_1, KEY_2]},
        {"address": "0x" + "cd" * 20, "storageKeys": []},
    ]

    access_list = mapper.json_list_to_access_list(raw)

    assert len(access_list) == 2
    assert access_list[0].address == ADDRESS
    assert access_list[0].storage_keys == (KEY_2, KEY_1, KEY_2)
    assert access_list[1].storage_keys == ()


def test_rejects_short_storage_key(mapper):
    with pytest.raises(DecodeError, match="entry 0"):
        mapper.json_list_to_access_list([{"address": ADDRESS, "storageKeys": ["0x01"]}])


def test_rejects_missing_or_wrong_width_address(mapper):
    with pytest.raises(DecodeError, match="has no address"):
        mapper.json_list_to_access_list([{"storageKeys": [KEY_1]}])
    with pytest.raises(DecodeError):
        mapper.json_list_to_access_list([{"address": "0x" + "ab" * 19, "storageKeys": []}])


def test_access_list_to_rlp_and_dict(mapper):
    access_list = mapper.json_list_to_access_list([{"address": ADDRESS, "storageKeys": [KEY_1]}])

    assert mapper.access_list_to_rlp(access_list) == [[bytes.fromhex("ab" * 20), [bytes.fromhex("00" * 31 + "01")]]]
    assert mapper.access_list_to_dict(access_list) == [{"address": ADDRESS, "storageKeys": [KEY_1]}]
