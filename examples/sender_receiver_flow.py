#!/usr/bin/env python3
"""
Private Payment Flow - Sender and Receiver

Bob acts as:
- RECIPIENT: Publishes a payment code, detects the notification and
  recovers the spending keys

Alice acts as:
- SENDER: Notifies Bob's payment code and pays the derived addresses

This script:
1. Derives Bob's payment code from his seed
2. Has Alice build a notification for recipient index 7
3. Lets Bob scan a handful of output scripts for notifications
4. Derives the first addresses on both sides and compares them

Settings are read from PRIVPAY_NETWORK / PRIVPAY_MAX_WORKERS / PRIVPAY_LOG_LEVEL.
"""

import os
import sys

# Add repository root to path for privpay imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from privpay import AddressType, PaymentCode, Recipient, Sender, Settings, setup_logging

BOB_SEED = bytes(range(32))
ALICE_SEED = bytes(range(32, 96))
RECIPIENT_INDEX = 7
ADDRESS_COUNT = 3


def print_step_header(step: int, title: str, actor: str):
    print("=" * 60)
    print(f"STEP {step}: {title} ({actor})")
    print("=" * 60)


def sender_receiver_flow(settings: Settings):
    """
    Run one full notification and derivation round trip

    Roles: RECIPIENT (Bob) + SENDER (Alice)
    """
    network = settings.network

    with Recipient.from_seed(BOB_SEED, network=network,
                             accepted=[AddressType.SEGWIT_V0, AddressType.TAPROOT_V1]) as bob, \
            Sender.from_seed(ALICE_SEED, network=network) as alice:

        print_step_header(1, "Publish Payment Code", "Bob")
        code_text = bob.payment_code().to_text()
        print(f"   Payment code: {code_text}")
        print(f"   Accepts: {', '.join(t.rule.name for t in sorted(bob.accepted))}")
        print()

        print_step_header(2, "Notify Recipient", "Alice")
        payment_code = PaymentCode.from_text(code_text, network=network)
        notification, sent = alice.notify(payment_code, RECIPIENT_INDEX, AddressType.SEGWIT_V0)
        print(f"   Notification script: {notification.to_hex()}")
        print(f"   Ephemeral key: {notification.public_key.hex}")
        print()

        print_step_header(3, "Scan For Notifications", "Bob")
        candidates = [
            bytes.fromhex("0014751e76e8199196d454941c45d1b3a323f1433bd6"),
            bytes.fromhex("6a0401020304"),
            notification.to_script(),
        ]
        found = bob.scan(candidates)
        if not found:
            print("   ❌ No notification detected")
            return False
        position, received = found[0]
        print(f"   ✅ Notification found in script {position}")
        print(f"   Commitment matches sender: {received == sent}")
        print()

        print_step_header(4, "Derive Addresses", "Alice + Bob")
        paid = alice.addresses(sent, 0, ADDRESS_COUNT - 1, max_workers=settings.max_workers)
        owned = bob.keys(received, 0, ADDRESS_COUNT - 1, max_workers=settings.max_workers)

        all_match = True
        for ours, theirs in zip(paid, owned):
            match = ours.address == theirs.address
            spendable = theirs.private_key.public_key == theirs.public_key
            all_match = all_match and match and spendable
            status = "✅" if match and spendable else "❌"
            print(f"   {status} index {ours.index}: {ours.address}")
        print()

        return all_match


if __name__ == "__main__":
    settings = Settings.from_env()
    setup_logging(settings.log)

    if sender_receiver_flow(settings):
        print("🎉 Sender and receiver derived identical addresses")
        sys.exit(0)
    print("❌ Derivation mismatch")
    sys.exit(1)
