"""
SafeStake eligibility evaluator tests.

Evaluation is read-only: it never writes to the store, and an ELIGIBLE answer
is honoured by record_transaction for the same amount at the same time.
"""

import unittest
from datetime import datetime, timezone

from safestake import (
    AttestationSigner,
    ComplianceError,
    ComplianceRecord,
    EligibilityEvaluator,
    EligibilityReport,
    EligibilityStatus,
    ErrorKind,
    InMemoryComplianceStore,
    LimitManager,
    Registration,
    SelfExclusion,
    SignatureVerifier,
    SpendLedger,
    identity_key,
    to_timestamp,
)
from safestake.eligibility import evaluate
from safestake.windows import MS_PER_DAY


def ts(*args) -> int:
    return to_timestamp(datetime(*args, tzinfo=timezone.utc))


NOW = ts(2026, 1, 15, 12, 0)
ALICE = bytes([1] * 32)


class TestEvaluate(unittest.TestCase):
    """Decision order over a record snapshot."""

    def _record(self, **overrides):
        record = ComplianceRecord.create(identity_key(ALICE), NOW, age_verified=True,
                                         daily_limit=1_000, monthly_limit=5_000)
        for name, value in overrides.items():
            setattr(record, name, value)
        return record

    def test_not_registered(self):
        status, windows = evaluate(None, True, 1, NOW)
        self.assertEqual(status, EligibilityStatus.NOT_REGISTERED)
        self.assertIsNone(windows)

    def test_cooldown_first(self):
        record = self._record(cooldown_until=NOW + 1, age_verified=False)
        status, _ = evaluate(record, True, 1, NOW)
        self.assertEqual(status, EligibilityStatus.ON_COOLDOWN)

    def test_cooldown_ends_at_boundary(self):
        record = self._record(cooldown_until=NOW)
        status, _ = evaluate(record, True, 1, NOW)
        self.assertEqual(status, EligibilityStatus.SELF_EXCLUDED)

    def test_excluded_before_age_check(self):
        status, _ = evaluate(self._record(age_verified=False), True, 1, NOW)
        self.assertEqual(status, EligibilityStatus.SELF_EXCLUDED)

    def test_age_not_verified(self):
        status, _ = evaluate(self._record(age_verified=False), False, 1, NOW)
        self.assertEqual(status, EligibilityStatus.AGE_NOT_VERIFIED)

    def test_daily_before_monthly(self):
        record = self._record(daily_spent=900, monthly_spent=4_900)
        status, _ = evaluate(record, False, 200, NOW)
        self.assertEqual(status, EligibilityStatus.DAILY_LIMIT_REACHED)

    def test_monthly(self):
        record = self._record(daily_spent=0, monthly_spent=4_900)
        status, _ = evaluate(record, False, 200, NOW)
        self.assertEqual(status, EligibilityStatus.MONTHLY_LIMIT_REACHED)

    def test_eligible_after_rollover(self):
        record = self._record(daily_spent=1_000, monthly_spent=1_000)
        status, windows = evaluate(record, False, 1_000, NOW + MS_PER_DAY)
        self.assertEqual(status, EligibilityStatus.ELIGIBLE)
        self.assertTrue(windows.daily_reset)


class TestEligibilityEvaluator(unittest.TestCase):

    def setUp(self):
        self.signer = AttestationSigner.from_seed(b"\x01")
        self.store = InMemoryComplianceStore()
        self.registration = Registration(self.store, SignatureVerifier(self.signer.public_key))
        self.limits = LimitManager(self.store)
        self.ledger = SpendLedger(self.store)
        self.evaluator = EligibilityEvaluator(self.store)

    def _register(self, daily=1_000_000_000, monthly=5_000_000_000):
        self.registration.register(ALICE, self.signer.sign_account(ALICE), NOW)
        self.limits.set_limits(ALICE, daily, monthly, NOW)

    def test_eligible(self):
        self._register()
        self.assertEqual(self.evaluator.check_eligibility(ALICE, 300_000_000, NOW), EligibilityStatus.ELIGIBLE)

    def test_eligible_answer_is_honoured(self):
        self._register(daily=1_000, monthly=5_000)
        self.ledger.record_transaction(ALICE, 250, "platform_1", NOW)
        for amount in (0, 1, 750):
            self.assertEqual(self.evaluator.check_eligibility(ALICE, amount, NOW), EligibilityStatus.ELIGIBLE)
        self.ledger.record_transaction(ALICE, 750, "platform_1", NOW)
        self.assertEqual(self.evaluator.check_eligibility(ALICE, 1, NOW), EligibilityStatus.DAILY_LIMIT_REACHED)

    def test_evaluation_does_not_write(self):
        self._register(daily=1_000, monthly=5_000)
        self.ledger.record_transaction(ALICE, 1_000, "platform_1", NOW)
        before = self.store.get_record(identity_key(ALICE))

        status = self.evaluator.check_eligibility(ALICE, 1_000, NOW + MS_PER_DAY)

        self.assertEqual(status, EligibilityStatus.ELIGIBLE)
        self.assertEqual(self.store.get_record(identity_key(ALICE)), before)

    def test_report_remaining_after_rollover(self):
        self._register(daily=1_000, monthly=5_000)
        self.ledger.record_transaction(ALICE, 800, "platform_1", NOW)

        same_day = self.evaluator.report(ALICE, 100, NOW)
        self.assertEqual((same_day.remaining_daily, same_day.remaining_monthly), (200, 4_200))
        self.assertTrue(same_day.eligible)

        next_day = self.evaluator.report(ALICE, 100, NOW + MS_PER_DAY)
        self.assertEqual((next_day.remaining_daily, next_day.remaining_monthly), (1_000, 4_200))

    def test_report_remaining_never_negative(self):
        self._register(daily=1_000, monthly=5_000)
        self.ledger.record_transaction(ALICE, 900, "platform_1", NOW)
        self.limits.set_limits(ALICE, 500, 5_000, NOW)

        report = self.evaluator.report(ALICE, 1, NOW)
        self.assertEqual(report.status, EligibilityStatus.DAILY_LIMIT_REACHED)
        self.assertEqual(report.remaining_daily, 0)

    def test_report_without_record(self):
        report = self.evaluator.report(ALICE, 5, NOW)
        self.assertEqual(report.status, EligibilityStatus.NOT_REGISTERED)
        self.assertIsNone(report.remaining_daily)
        self.assertEqual(report.to_dict(), {
            "status": "NotRegistered",
            "eligible": False,
            "proposed_amount": 5,
            "message": "Participant is not registered",
        })

    def test_report_cooldown(self):
        self._register()
        entry, _ = SelfExclusion(self.store).self_exclude(ALICE, 30, NOW)

        report = self.evaluator.report(ALICE, 1, NOW)
        self.assertEqual(report.status, EligibilityStatus.ON_COOLDOWN)
        self.assertEqual(report.cooldown_until, entry.cooldown_until)
        self.assertIn("2026-02-14T12:00:00.000Z", report.message)
        self.assertEqual(report.to_dict()["cooldown_until"], entry.cooldown_until)

        after = self.evaluator.report(ALICE, 1, entry.cooldown_until)
        self.assertEqual(after.status, EligibilityStatus.SELF_EXCLUDED)
        self.assertIsNone(after.cooldown_until)

    def test_exclusion_without_record_reads_not_registered(self):
        SelfExclusion(self.store).self_exclude(ALICE, 30, NOW)
        self.assertEqual(self.evaluator.check_eligibility(ALICE, 1, NOW), EligibilityStatus.NOT_REGISTERED)

    def test_invalid_amount(self):
        with self.assertRaises(ComplianceError) as ctx:
            self.evaluator.check_eligibility(ALICE, -5, NOW)
        self.assertEqual(ctx.exception.kind, ErrorKind.PARSE_PARAMS)

    def test_report_eligible_property(self):
        self.assertTrue(EligibilityReport(EligibilityStatus.ELIGIBLE, 0).eligible)
        self.assertFalse(EligibilityReport(EligibilityStatus.SELF_EXCLUDED, 0).eligible)


if __name__ == "__main__":
    unittest.main()
