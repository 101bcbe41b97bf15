"""
Payment code tests
"""

import pytest
from embit import bech32

from privpay import AddressType, DecodeError, DerivationError, PaymentCode

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"


def corrupt_last_char(text: str) -> str:
    last = text[-1]
    replacement = CHARSET[(CHARSET.index(last) + 1) % len(CHARSET)]
    return text[:-1] + replacement


class TestDerive:
    """Tests for PaymentCode.derive."""

    def test_deterministic(self, receiver_seed):
        assert PaymentCode.derive(receiver_seed, 0) == PaymentCode.derive(receiver_seed, 0)

    def test_default_address_types(self, receiver_seed):
        code = PaymentCode.derive(receiver_seed)
        assert code.address_types == frozenset([AddressType.SEGWIT_V0])

    def test_accounts_are_independent(self, receiver_seed):
        assert PaymentCode.derive(receiver_seed, 0).public_key != PaymentCode.derive(receiver_seed, 1).public_key

    def test_networks_are_independent(self, receiver_seed):
        main = PaymentCode.derive(receiver_seed, 0, network="main")
        test = PaymentCode.derive(receiver_seed, 0, network="test")
        assert main.public_key != test.public_key

    @pytest.mark.parametrize("account", [-1, 2**31, "0"])
    def test_account_out_of_range(self, receiver_seed, account):
        with pytest.raises(DerivationError):
            PaymentCode.derive(receiver_seed, account)

    @pytest.mark.parametrize("seed", [bytes(range(8)), b"\x00" * 32, bytes(range(65))])
    def test_bad_seed(self, seed):
        with pytest.raises(DerivationError):
            PaymentCode.derive(seed, 0)

    def test_address_type_sets_distinguish_identities(self, receiver_seed):
        segwit = PaymentCode.derive(receiver_seed, 0, [AddressType.SEGWIT_V0])
        both = PaymentCode.derive(receiver_seed, 0, [AddressType.SEGWIT_V0, AddressType.TAPROOT_V1])
        assert segwit.public_key == both.public_key
        assert segwit != both
        assert segwit.to_text() != both.to_text()

    def test_empty_address_types_allowed(self, receiver_seed):
        code = PaymentCode.derive(receiver_seed, 0, [])
        assert code.address_types == frozenset()
        assert not code.accepts(AddressType.SEGWIT_V0)
        assert PaymentCode.from_text(code.to_text()) == code


class TestEncoding:
    """Tests for binary and text encodings."""

    def test_binary_layout(self, receiver_seed):
        code = PaymentCode.derive(receiver_seed, 0, list(AddressType))
        data = code.to_bytes()
        assert len(data) == 35
        assert data[0] == 0x01
        assert data[1] == 0x07
        assert data[2:] == code.public_key.bytes

    def test_binary_round_trip(self, receiver_seed):
        code = PaymentCode.derive(receiver_seed, 3, [AddressType.LEGACY])
        assert PaymentCode.from_bytes(code.to_bytes()) == code

    @pytest.mark.parametrize("types", [
        [AddressType.LEGACY],
        [AddressType.SEGWIT_V0],
        [AddressType.TAPROOT_V1],
        list(AddressType),
    ])
    def test_text_round_trip(self, receiver_seed, types):
        code = PaymentCode.derive(receiver_seed, 0, types)
        text = code.to_text()
        assert text.startswith("pm1")
        assert str(code) == text
        assert PaymentCode.from_text(text) == code

    def test_testnet_prefix(self, receiver_seed):
        code = PaymentCode.derive(receiver_seed, 0, network="test")
        assert code.to_text().startswith("tp1")
        assert PaymentCode.from_text(code.to_text()) == code

    def test_regtest_decodes_with_explicit_network(self, receiver_seed):
        code = PaymentCode.derive(receiver_seed, 0, network="regtest")
        assert PaymentCode.from_text(code.to_text(), network="regtest") == code

    def test_network_mismatch(self, receiver_seed):
        code = PaymentCode.derive(receiver_seed, 0)
        with pytest.raises(DecodeError):
            PaymentCode.from_text(code.to_text(), network="test")

    def test_checksum_mismatch(self, receiver_seed):
        text = PaymentCode.derive(receiver_seed, 0).to_text()
        with pytest.raises(DecodeError):
            PaymentCode.from_text(corrupt_last_char(text))

    def test_truncated_payload(self, receiver_seed):
        data = PaymentCode.derive(receiver_seed, 0).to_bytes()[:-1]
        text = bech32.bech32_encode(bech32.Encoding.BECH32M, "pm", bech32.convertbits(data, 8, 5))
        with pytest.raises(DecodeError):
            PaymentCode.from_text(text)

    def test_truncated_binary(self, receiver_seed):
        with pytest.raises(DecodeError):
            PaymentCode.from_bytes(PaymentCode.derive(receiver_seed, 0).to_bytes()[:20])

    def test_unknown_version(self, receiver_seed):
        data = bytearray(PaymentCode.derive(receiver_seed, 0).to_bytes())
        data[0] = 0x02
        with pytest.raises(DecodeError):
            PaymentCode.from_bytes(bytes(data))

    def test_unknown_feature_bits(self, receiver_seed):
        data = bytearray(PaymentCode.derive(receiver_seed, 0).to_bytes())
        data[1] = 0x80
        with pytest.raises(DecodeError):
            PaymentCode.from_bytes(bytes(data))

    def test_invalid_public_key(self, receiver_seed):
        data = bytearray(PaymentCode.derive(receiver_seed, 0).to_bytes())
        data[2] = 0x05
        with pytest.raises(DecodeError):
            PaymentCode.from_bytes(bytes(data))

    def test_bech32_checksum_rejected(self, receiver_seed):
        data = PaymentCode.derive(receiver_seed, 0).to_bytes()
        text = bech32.bech32_encode(bech32.Encoding.BECH32, "pm", bech32.convertbits(data, 8, 5))
        with pytest.raises(DecodeError):
            PaymentCode.from_text(text)

    def test_unknown_prefix(self, receiver_seed):
        data = PaymentCode.derive(receiver_seed, 0).to_bytes()
        text = bech32.bech32_encode(bech32.Encoding.BECH32M, "xx", bech32.convertbits(data, 8, 5))
        with pytest.raises(DecodeError):
            PaymentCode.from_text(text)

    def test_garbage(self):
        with pytest.raises(DecodeError):
            PaymentCode.from_text("not a payment code")

    def test_to_dict(self, receiver_seed):
        code = PaymentCode.derive(receiver_seed, 0, [AddressType.TAPROOT_V1, AddressType.LEGACY])
        info = code.to_dict()
        assert info["payment_code"] == code.to_text()
        assert info["address_types"] == ["p2pkh", "p2tr"]
        assert info["public_key"] == code.public_key.hex
