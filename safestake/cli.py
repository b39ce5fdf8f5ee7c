#!/usr/bin/env python3
"""
SafeStake Command Line Interface

Usage:
    safestake keygen [--output <file>] [--key-id <id>]
    safestake sign --key <file> --account <account>
    safestake verify --public-key <hex> --account <account> --signature <hex>
    safestake identity --account <account>
    safestake demo
"""

import argparse
import json
import sys

from .errors import ComplianceError


def load_json(path: str) -> dict:
    """Load JSON from file."""
    with open(path, 'r') as f:
        return json.load(f)


def save_json(data: dict, path: str):
    """Save JSON to file."""
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)


def parse_account(value: str):
    """Accounts prefixed with hex: are raw bytes, anything else is text."""
    if value.startswith("hex:"):
        return bytes.fromhex(value[4:])
    return value


def cmd_keygen(args):
    """Generate a verifier key pair."""
    from safestake import AttestationSigner

    signer = AttestationSigner.generate(key_id=args.key_id)
    key_pair = signer.key_pair()

    if args.output:
        save_json(key_pair.to_dict(), args.output)
        print(f"Key pair saved to: {args.output}")
    else:
        print(json.dumps(key_pair.to_dict(), indent=2))

    print(f"\nVerifier public key: {key_pair.verify_key.hex()}", file=sys.stderr)
    return 0


def cmd_sign(args):
    """Sign an account identifier, as the verifier backend does after an age check."""
    from safestake import AttestationSigner, KeyPair

    key_pair = KeyPair.from_dict(load_json(args.key))
    signer = AttestationSigner(key_pair.signing_key, key_id=key_pair.key_id)
    signature = signer.sign_account(parse_account(args.account))

    print(json.dumps({
        "account": args.account,
        "key_id": key_pair.key_id,
        "signature": signature.hex(),
    }, indent=2))
    return 0


def cmd_verify(args):
    """Check an attestation against a verifier public key."""
    from safestake import SignatureVerifier
    from safestake.signing import SIGNATURE_LENGTH, decode_key_material

    verifier = SignatureVerifier(args.public_key)
    try:
        signature = decode_key_material(args.signature, SIGNATURE_LENGTH)
    except ValueError as e:
        print(f"✗ INVALID: {e}")
        return 1

    if verifier.verify_account(parse_account(args.account), signature):
        print("✓ VALID")
        return 0
    print("✗ INVALID: signature does not verify")
    return 1


def cmd_identity(args):
    """Print the identity key for an account."""
    from safestake import identity_hex, identity_key

    print(identity_hex(identity_key(parse_account(args.account))))
    return 0


def cmd_demo(args):
    """Run a demonstration of the registry."""
    from datetime import datetime, timezone

    from safestake import (
        AttestationSigner,
        ComplianceEngine,
        ComplianceError,
        to_timestamp,
    )

    print("=" * 60)
    print("SafeStake Registry Demonstration")
    print("=" * 60)

    signer = AttestationSigner.from_seed(b"\x01", key_id="demo-verifier")
    engine = ComplianceEngine(signer.public_key)
    now = to_timestamp(datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc))

    alice = bytes([1] * 32)
    bob = bytes([2] * 32)
    charlie = bytes([3] * 32)

    print("\n" + "-" * 60)
    print("Scenario 1: Alice registers and sets limits")
    print("-" * 60)
    engine.register(alice, signer.sign_account(alice), now)
    engine.set_limits(alice, 1_000_000_000, 5_000_000_000, now)
    print(f"Eligibility for 300000000: {engine.check_eligibility(alice, 300_000_000, now).value}")

    receipt = engine.record_transaction(alice, 600_000_000, "platform_1", now)
    print(f"Recorded 600000000 on platform_1, remaining today: {receipt.remaining_daily}")
    print(f"Eligibility for 500000000: {engine.check_eligibility(alice, 500_000_000, now).value}")
    try:
        engine.record_transaction(alice, 500_000_000, "platform_1", now)
    except ComplianceError as e:
        print(f"  Rejected: {e.kind.value}")

    print("\n" + "-" * 60)
    print("Scenario 2: Bob sets limits without verifying his age")
    print("-" * 60)
    engine.set_limits(bob, 1_000_000_000, 5_000_000_000, now)
    print(f"Eligibility: {engine.check_eligibility(bob, 100_000_000, now).value}")

    print("\n" + "-" * 60)
    print("Scenario 3: Charlie never registered")
    print("-" * 60)
    print(f"Eligibility: {engine.check_eligibility(charlie, 100_000_000, now).value}")

    print("\n" + "-" * 60)
    print("Scenario 4: Alice self-excludes for 30 days")
    print("-" * 60)
    engine.self_exclude(alice, 30, now)
    report = engine.eligibility_report(alice, 100_000_000, now)
    print(f"Eligibility: {report.status.value}")
    print(f"  {report.message}")

    print("\n" + "=" * 60)
    print("Demonstration complete.")
    print("=" * 60)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="SafeStake Registry CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  safestake demo                                Run demonstration
  safestake keygen -o verifier_key.json
  safestake sign -k verifier_key.json -a 3kBx...
  safestake verify -p <public key hex> -a 3kBx... -s <signature hex>
  safestake identity -a hex:0101...01
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # keygen
    keygen_parser = subparsers.add_parser("keygen", help="Generate verifier key pair")
    keygen_parser.add_argument("-o", "--output", help="Output file for key pair")
    keygen_parser.add_argument("-k", "--key-id", help="Key identifier")

    # sign
    sign_parser = subparsers.add_parser("sign", help="Sign an account identifier")
    sign_parser.add_argument("-k", "--key", required=True, help="Key pair JSON file")
    sign_parser.add_argument("-a", "--account", required=True, help="Account identifier (hex:... for raw bytes)")

    # verify
    verify_parser = subparsers.add_parser("verify", help="Verify an attestation")
    verify_parser.add_argument("-p", "--public-key", required=True, help="Verifier public key (hex or base64)")
    verify_parser.add_argument("-a", "--account", required=True, help="Account identifier (hex:... for raw bytes)")
    verify_parser.add_argument("-s", "--signature", required=True, help="Signature (hex or base64)")

    # identity
    identity_parser = subparsers.add_parser("identity", help="Derive identity key")
    identity_parser.add_argument("-a", "--account", required=True, help="Account identifier (hex:... for raw bytes)")

    # demo
    subparsers.add_parser("demo", help="Run demonstration")

    args = parser.parse_args(argv)

    commands = {
        "keygen": cmd_keygen,
        "sign": cmd_sign,
        "verify": cmd_verify,
        "identity": cmd_identity,
        "demo": cmd_demo,
    }

    if args.command not in commands:
        parser.print_help()
        return 2
    try:
        return commands[args.command](args)
    except ComplianceError as e:
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
