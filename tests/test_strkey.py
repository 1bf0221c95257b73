import pytest
import stellar_sdk

from lumenpay.errors import InvalidAddress
from lumenpay.strkey import AccountAddress, Address, ContractAddress, is_valid_address

ZERO_ACCOUNT = "GAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAWHF"
REGISTRY = "CDXQDRTF2BRCD63QVUBUUDC2DIQHHCDBAPA6P3UD5EVRMRN4O327VERK"
SDK_DOC_ACCOUNT = "GATPGGOIE6VWADVKD3ER3IFO2IH6DTOA5G535ITB3TT66FZFSIZEAU2B"


def test_zero_account_encoding():
    assert AccountAddress.from_payload(bytes(32)) == ZERO_ACCOUNT
    assert AccountAddress.parse(ZERO_ACCOUNT).payload == bytes(32)


def test_parse_dispatches_on_prefix():
    assert isinstance(Address.parse(ZERO_ACCOUNT), AccountAddress)
    assert isinstance(Address.parse(SDK_DOC_ACCOUNT), AccountAddress)
    contract = Address.parse(REGISTRY)
    assert isinstance(contract, ContractAddress)
    assert contract.kind == "contract"


def test_subtype_mismatch_is_rejected():
    with pytest.raises(InvalidAddress):
        AccountAddress.parse(REGISTRY)
    with pytest.raises(InvalidAddress):
        ContractAddress.parse(ZERO_ACCOUNT)


@pytest.mark.parametrize("text", [
    "",
    "GABC",
    ZERO_ACCOUNT[:-1] + "A",          # checksum
    ZERO_ACCOUNT.lower(),             # alphabet
    ZERO_ACCOUNT + "A",               # length
    "0" * 56,
    "SB2LHKBL24ITV2Y346BU46XPEL45BDAFOOJLZ6SESCJZ6V5JMP7D6G5X",   # secret seed
])
def test_invalid_strings_never_become_addresses(text):
    with pytest.raises(InvalidAddress):
        Address.parse(text)
    assert not is_valid_address(text)


def test_payload_matches_the_sdk_keypair():
    keypair = stellar_sdk.Keypair.from_raw_ed25519_seed(bytes(range(32)))
    address = AccountAddress.parse(keypair.public_key)
    assert address.payload == keypair.raw_public_key()
    assert AccountAddress.from_payload(keypair.raw_public_key()) == keypair.public_key


def test_from_payload_requires_32_bytes():
    with pytest.raises(InvalidAddress):
        AccountAddress.from_payload(b"\x00" * 31)


def test_to_sdk_address():
    assert stellar_sdk.Address(REGISTRY) == ContractAddress.parse(REGISTRY).to_sdk()
    assert ContractAddress.parse(REGISTRY).to_sdk().type == stellar_sdk.address.AddressType.CONTRACT


def test_is_valid_address_kind_filter():
    assert is_valid_address(ZERO_ACCOUNT, "account")
    assert not is_valid_address(ZERO_ACCOUNT, "contract")
    assert is_valid_address(REGISTRY, "contract")
