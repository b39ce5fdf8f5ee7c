"""
SafeStake registration tests.

Critical invariant tested:
    NO RECORD BECOMES AGE-VERIFIED WITHOUT A VALID ATTESTATION
"""

import unittest
from datetime import datetime, timezone

from safestake import (
    AttestationSigner,
    ComplianceError,
    ErrorKind,
    InMemoryComplianceStore,
    LimitManager,
    Registration,
    ReregistrationPolicy,
    SelfExclusion,
    SignatureVerifier,
    SpendLedger,
    identity_key,
    to_timestamp,
)
from safestake.windows import MS_PER_DAY

NOW = to_timestamp(datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc))
ALICE = bytes([1] * 32)
BOB = bytes([2] * 32)


class TestRegistration(unittest.TestCase):
    """Test attestation-gated registration."""

    def setUp(self):
        self.signer = AttestationSigner.from_seed(b"\x01")
        self.store = InMemoryComplianceStore()
        self.registration = Registration(self.store, SignatureVerifier(self.signer.public_key))

    def test_valid_attestation_creates_verified_record(self):
        record = self.registration.register(ALICE, self.signer.sign_account(ALICE), NOW)

        self.assertTrue(record.age_verified)
        self.assertEqual(record.identity, identity_key(ALICE))
        self.assertEqual((record.daily_limit, record.monthly_limit), (0, 0))
        self.assertEqual((record.daily_spent, record.monthly_spent), (0, 0))
        self.assertEqual((record.last_reset_day, record.last_reset_month), (NOW, NOW))
        self.assertIsNone(record.cooldown_until)
        self.assertEqual(record.platforms_used, set())
        self.assertEqual(self.store.get_record(identity_key(ALICE)), record)

    def test_text_account(self):
        account = "3kBx9vQ2mN"
        record = self.registration.register(account, self.signer.sign_account(account), NOW)
        self.assertEqual(record.identity, identity_key(account.encode("utf-8")))

    def test_wrong_key_rejected(self):
        other = AttestationSigner.from_seed(b"\x02")
        with self.assertRaises(ComplianceError) as ctx:
            self.registration.register(ALICE, other.sign_account(ALICE), NOW)
        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_SIGNATURE)
        self.assertIsNone(self.store.get_record(identity_key(ALICE)))

    def test_signature_for_other_account_rejected(self):
        with self.assertRaises(ComplianceError) as ctx:
            self.registration.register(BOB, self.signer.sign_account(ALICE), NOW)
        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_SIGNATURE)
        self.assertEqual(self.store.stats()["records_count"], 0)

    def test_malformed_signature_rejected(self):
        for bad in (b"", bytes(63), bytes(65), bytes(64)):
            with self.assertRaises(ComplianceError) as ctx:
                self.registration.register(ALICE, bad, NOW)
            self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_SIGNATURE)

    def test_failed_registration_leaves_existing_record(self):
        LimitManager(self.store).set_limits(ALICE, 100, 500, NOW)
        before = self.store.get_record(identity_key(ALICE))

        with self.assertRaises(ComplianceError):
            self.registration.register(ALICE, bytes(64), NOW)

        self.assertEqual(self.store.get_record(identity_key(ALICE)), before)
        self.assertFalse(before.age_verified)

    def test_bad_timestamp(self):
        with self.assertRaises(ComplianceError) as ctx:
            self.registration.register(ALICE, self.signer.sign_account(ALICE), -1)
        self.assertEqual(ctx.exception.kind, ErrorKind.PARSE_PARAMS)

    def test_registration_inherits_exclusion_cooldown(self):
        entry, has_record = SelfExclusion(self.store).self_exclude(ALICE, 7, NOW)
        self.assertFalse(has_record)

        record = self.registration.register(ALICE, self.signer.sign_account(ALICE), NOW + 1)
        self.assertEqual(record.cooldown_until, entry.cooldown_until)
        self.assertEqual(record.cooldown_until, NOW + 7 * MS_PER_DAY)


class TestReregistration(unittest.TestCase):
    """Test both re-registration policies."""

    def setUp(self):
        self.signer = AttestationSigner.from_seed(b"\x01")
        self.verifier = SignatureVerifier(self.signer.public_key)
        self.store = InMemoryComplianceStore()
        self.signature = self.signer.sign_account(ALICE)

    def _spend(self, registration):
        registration.register(ALICE, self.signature, NOW)
        LimitManager(self.store).set_limits(ALICE, 1_000, 5_000, NOW)
        SpendLedger(self.store).record_transaction(ALICE, 400, "platform_1", NOW)

    def test_reset_policy_replaces_record(self):
        registration = Registration(self.store, self.verifier, ReregistrationPolicy.RESET)
        self._spend(registration)

        record = registration.register(ALICE, self.signature, NOW + MS_PER_DAY)
        self.assertTrue(record.age_verified)
        self.assertEqual((record.daily_limit, record.monthly_limit), (0, 0))
        self.assertEqual((record.daily_spent, record.monthly_spent), (0, 0))
        self.assertEqual(record.platforms_used, set())
        self.assertEqual(record.last_reset_day, NOW + MS_PER_DAY)

    def test_reset_policy_keeps_exclusion_cooldown(self):
        registration = Registration(self.store, self.verifier)
        self._spend(registration)
        entry, _ = SelfExclusion(self.store).self_exclude(ALICE, 30, NOW)

        record = registration.register(ALICE, self.signature, NOW + 1)
        self.assertEqual(record.cooldown_until, entry.cooldown_until)
        self.assertTrue(self.store.is_excluded(identity_key(ALICE)))

    def test_preserve_policy_keeps_state(self):
        registration = Registration(self.store, self.verifier, ReregistrationPolicy.PRESERVE)
        self._spend(registration)

        record = registration.register(ALICE, self.signature, NOW + 1)
        self.assertTrue(record.age_verified)
        self.assertEqual((record.daily_limit, record.monthly_limit), (1_000, 5_000))
        self.assertEqual((record.daily_spent, record.monthly_spent), (400, 400))
        self.assertEqual(record.platforms_used, {"platform_1"})
        self.assertEqual(record.last_reset_day, NOW)

    def test_preserve_policy_verifies_staged_record(self):
        registration = Registration(self.store, self.verifier, "preserve")
        LimitManager(self.store).set_limits(ALICE, 100, 500, NOW)

        record = registration.register(ALICE, self.signature, NOW + 1)
        self.assertTrue(record.age_verified)
        self.assertEqual((record.daily_limit, record.monthly_limit), (100, 500))

    def test_default_policy_is_reset(self):
        registration = Registration(self.store, self.verifier)
        self.assertEqual(registration.policy, ReregistrationPolicy.RESET)


if __name__ == "__main__":
    unittest.main()
