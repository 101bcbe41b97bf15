"""
Sender / Recipient role tests
"""

import pytest

from privpay import (
    AddressType,
    InputError,
    PaymentCode,
    PrivatePaymentError,
    Recipient,
    Sender,
)
from privpay import roles
from privpay.payment_code import derive_account_key


class TestExampleScenario:
    """Seed 00..1f, account 0, recipient index 7, SEGWIT_V0."""

    def test_end_to_end(self, sender, segwit_recipient):
        # Receiver publishes its payment code out of band
        code_text = segwit_recipient.payment_code().to_text()

        # Sender notifies it
        payment_code = PaymentCode.from_text(code_text)
        notification, sent = sender.notify(payment_code, 7, AddressType.SEGWIT_V0)
        script_hex = notification.to_hex()
        assert bytes.fromhex(script_hex)[2:4] == b"PP"

        # Receiver detects the notification and re-derives the commitment
        received = segwit_recipient.detect_notification(script_hex)
        assert received == sent

        # Both sides agree on index 0; only the receiver gets the private key
        sender_address = sender.address(sent, 0)
        address, public_key, private_key = segwit_recipient.key_info(received, 0)
        assert address == sender_address
        assert address.startswith("bc1q")
        assert private_key.public_key == public_key

        sender_keys = sender.addresses(sent, 0)
        assert sender_keys[0].private_key is None


class TestSender:
    """Tests for the Sender role."""

    def test_notify_idempotent(self, sender, recipient):
        code = recipient.payment_code()
        assert sender.notify(code, 3, AddressType.LEGACY) == sender.notify(code, 3, AddressType.LEGACY)

    def test_notify_unaccepted_type(self, sender, segwit_recipient):
        with pytest.raises(InputError):
            sender.notify(segwit_recipient.payment_code(), 0, AddressType.TAPROOT_V1)

    def test_default_address_type(self, sender, segwit_recipient):
        notification, _ = sender.notify(segwit_recipient.payment_code(), 0)
        assert notification.address_type is AddressType.SEGWIT_V0

    def test_addresses_range(self, sender, recipient):
        _, commitment = sender.notify(recipient.payment_code(), 0, AddressType.TAPROOT_V1)
        keys = sender.addresses(commitment, 0, 3)
        assert [k.index for k in keys] == [0, 1, 2, 3]
        assert keys[1].address == sender.address(commitment, 1)

    def test_different_senders_differ(self, sender, other_seed, recipient):
        code = recipient.payment_code()
        other = Sender.from_seed(other_seed)
        assert sender.notify(code, 0)[0].public_key != other.notify(code, 0)[0].public_key


class TestRecipient:
    """Tests for the Recipient role."""

    def test_payment_code_matches_derive(self, receiver_seed, all_types, recipient):
        assert recipient.payment_code() == PaymentCode.derive(receiver_seed, 0, all_types)

    def test_default_accepts_segwit(self, segwit_recipient):
        assert segwit_recipient.accepted == frozenset([AddressType.SEGWIT_V0])

    def test_accepts_names(self, receiver_seed):
        recipient = Recipient.from_seed(receiver_seed, accepted=["p2pkh", "p2tr"])
        assert recipient.accepted == frozenset([AddressType.LEGACY, AddressType.TAPROOT_V1])

    def test_detect_non_notification(self, recipient):
        assert recipient.detect_notification("0014751e76e8199196d454941c45d1b3a323f1433bd6") is None

    def test_detect_unaccepted_type(self, sender, recipient, segwit_recipient):
        # Notification made against a code accepting everything
        notification, _ = sender.notify(recipient.payment_code(), 0, AddressType.TAPROOT_V1)
        assert recipient.detect_notification(notification.to_script()) is not None
        assert segwit_recipient.detect_notification(notification.to_script()) is None

    def test_accepts_nothing(self, sender, recipient, receiver_seed):
        notification, _ = sender.notify(recipient.payment_code(), 0)
        deaf = Recipient.from_seed(receiver_seed, accepted=[])
        assert deaf.payment_code().address_types == frozenset()
        assert deaf.detect_notification(notification.to_script()) is None

    def test_detect_other_recipient(self, sender, recipient, other_seed):
        notification, _ = sender.notify(recipient.payment_code(), 0)
        stranger = Recipient.from_seed(other_seed, accepted=list(AddressType))
        assert stranger.detect_notification(notification.to_script()) is None

    def test_scan(self, sender, recipient, other_seed):
        stranger = Recipient.from_seed(other_seed, accepted=list(AddressType))
        ours, commitment = sender.notify(recipient.payment_code(), 2, AddressType.LEGACY)
        theirs, _ = sender.notify(stranger.payment_code(), 2, AddressType.LEGACY)

        scripts = [
            bytes.fromhex("0014751e76e8199196d454941c45d1b3a323f1433bd6"),
            theirs.to_script(),
            ours.to_hex(),
            b"\x6a",
        ]
        found = recipient.scan(scripts)
        assert [position for position, _ in found] == [2]
        assert found[0][1] == commitment

    def test_keys_range(self, sender, recipient):
        notification, commitment = sender.notify(recipient.payment_code(), 1, AddressType.SEGWIT_V0)
        received = recipient.detect_notification(notification.to_script())

        keys = recipient.keys(received, 0, 2)
        assert [k.address for k in keys] == [k.address for k in sender.addresses(commitment, 0, 2)]
        for key in keys:
            assert key.private_key.public_key == key.public_key

    def test_keys_default_single(self, sender, recipient):
        notification, _ = sender.notify(recipient.payment_code(), 1)
        received = recipient.detect_notification(notification.to_script())
        assert [k.index for k in recipient.keys(received, 4)] == [4]

    def test_testnet(self, sender_seed, receiver_seed):
        recipient = Recipient.from_seed(receiver_seed, network="test")
        sender = Sender.from_seed(sender_seed, network="test")
        code = PaymentCode.from_text(recipient.payment_code().to_text())
        assert code.network == "test"

        notification, commitment = sender.notify(code, 0)
        received = recipient.detect_notification(notification.to_script())
        assert received == commitment
        assert recipient.key_info(received, 0)[0].startswith("tb1q")

    def test_unknown_network(self, receiver_seed):
        with pytest.raises(InputError):
            Recipient.from_seed(receiver_seed, network="moon")

    def test_context_manager_wipes(self, receiver_seed):
        with Recipient.from_seed(receiver_seed) as recipient:
            recipient.payment_code()
        with pytest.raises(PrivatePaymentError):
            recipient.payment_code()


class TestNetworks:
    """Sender and recipient must agree on the network."""

    def test_regtest(self, sender_seed, receiver_seed):
        recipient = Recipient.from_seed(receiver_seed, network="regtest")
        sender = Sender.from_seed(sender_seed, network="regtest")

        # "tp" codes decode as test when no network is given
        code = PaymentCode.from_text(recipient.payment_code().to_text())
        assert code.network == "test"

        notification, sent = sender.notify(code, 0)
        assert sent.network == "regtest"

        received = recipient.detect_notification(notification.to_script())
        assert received == sent
        address = recipient.key_info(received, 0)[0]
        assert address == sender.address(sent, 0)
        assert address.startswith("bcrt1q")

    def test_mainnet_code_rejected_on_testnet(self, sender_seed, segwit_recipient):
        sender = Sender.from_seed(sender_seed, network="test")
        with pytest.raises(InputError):
            sender.notify(segwit_recipient.payment_code(), 0)

    def test_testnet_code_rejected_on_mainnet(self, sender, receiver_seed):
        recipient = Recipient.from_seed(receiver_seed, network="signet")
        with pytest.raises(InputError):
            sender.notify(recipient.payment_code(), 0)


class TestRecipientSecrets:
    """Account keys are wiped on every exit path."""

    def test_bad_accepted_type_wipes_account_key(self, monkeypatch, receiver_seed):
        derived = []

        def capture(*args, **kwargs):
            key = derive_account_key(*args, **kwargs)
            derived.append(key)
            return key

        monkeypatch.setattr(roles, "derive_account_key", capture)
        with pytest.raises(InputError):
            Recipient.from_seed(receiver_seed, accepted=["bogus"])
        assert all(key.wiped for key in derived)

    def test_constructor_failure_wipes_account_key(self, monkeypatch, receiver_seed):
        derived = []

        def capture(*args, **kwargs):
            key = derive_account_key(*args, **kwargs)
            derived.append(key)
            return key

        def reject(network):
            raise InputError(f"Unknown network: {network!r}")

        monkeypatch.setattr(roles, "derive_account_key", capture)
        monkeypatch.setattr(roles, "network_params", reject)
        with pytest.raises(InputError):
            Recipient.from_seed(receiver_seed)
        assert len(derived) == 1
        assert derived[0].wiped
