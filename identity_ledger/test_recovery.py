"""
Tests for the quorum-gated recovery protocol.
"""
import itertools
import unittest
from identity_ledger.access import AccessControl
from identity_ledger.errors import ErrorCode, LedgerError
from identity_ledger.identity import IdentityRegistry, VerificationAuthority
from identity_ledger.recovery import RecoveryCoordinator, RECOVERY_QUORUM
from identity_ledger.state import LedgerState
from identity_ledger.validators import ValidatorRegistry

OWNER = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
ALICE = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
BOB = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"
CHARLIE = "ST2NEB84ASENDXKYGJPQW86YXQCEFEX2ZQPG87ND"
VALIDATORS = [
    "ST2REHHS5J3CERCRBEPMGH7921Q6PYKAADT7JP2VB",
    "ST3AM1A56AK2C1XAFJ4115ZSV26EB49BVQ10MGCS0",
    "ST3NBRSFKX28FQ2ZJ1MAKX58HKHSDGNV5N7R21XCP",
    "ST3PF13W7Z0RRM42A8VZRVFQ75SV1K26RXEP8YGKJ",
]


class TestRecoveryCoordinator(unittest.TestCase):
    def setUp(self):
        self.state = LedgerState()
        self.access = AccessControl(self.state, OWNER)
        self.identities = IdentityRegistry(self.state)
        self.authority = VerificationAuthority(self.state, self.access)
        self.validators = ValidatorRegistry(self.state)
        self.recovery = RecoveryCoordinator(self.state, self.access, self.validators)

        self.identities.register(ALICE, "Alice", "alice@example.com")
        for i, validator in enumerate(VALIDATORS):
            self._make_validator(validator, f"Validator{i + 1}")

    def _make_validator(self, address, name):
        self.identities.register(address, name, f"{name.lower()}@example.com")
        self.authority.verify(OWNER, address)
        self.validators.register_validator(address)

    def _assert_error(self, code, func, *args):
        with self.assertRaises(LedgerError) as ctx:
            func(*args)
        self.assertEqual(ctx.exception.code, code)

    def test_quorum_is_three(self):
        self.assertEqual(RECOVERY_QUORUM, 3)

    def test_initiate_requires_identity(self):
        self._assert_error(ErrorCode.NOT_REGISTERED, self.recovery.initiate, BOB, CHARLIE)
        self.assertFalse(self.recovery.is_pending(BOB))

    def test_initiate_opens_empty_request(self):
        self.recovery.initiate(ALICE, BOB)

        request = self.recovery.get_request(ALICE)
        self.assertEqual(request.new_address, BOB)
        self.assertEqual(request.approvals, set())

    def test_reinitiate_overwrites_and_resets_approvals(self):
        self.recovery.initiate(ALICE, BOB)
        self.recovery.approve(VALIDATORS[0], ALICE)
        self.recovery.approve(VALIDATORS[1], ALICE)

        self.recovery.initiate(ALICE, CHARLIE)

        request = self.recovery.get_request(ALICE)
        self.assertEqual(request.new_address, CHARLIE)
        self.assertEqual(self.recovery.approval_count(ALICE), 0)
        self._assert_error(ErrorCode.INVALID_REQUEST, self.recovery.complete, BOB, ALICE)

    def test_approve_requires_validator(self):
        self.recovery.initiate(ALICE, BOB)

        self._assert_error(ErrorCode.NOT_A_VALIDATOR, self.recovery.approve, CHARLIE, ALICE)
        self.assertEqual(self.recovery.approval_count(ALICE), 0)

    def test_validator_check_precedes_request_check(self):
        self._assert_error(ErrorCode.NOT_A_VALIDATOR, self.recovery.approve, CHARLIE, ALICE)

    def test_approve_requires_pending_request(self):
        self._assert_error(ErrorCode.NO_ACTIVE_RECOVERY, self.recovery.approve, VALIDATORS[0], ALICE)

    def test_membership_checked_at_approval_time(self):
        self.recovery.initiate(ALICE, BOB)
        self._assert_error(ErrorCode.NOT_A_VALIDATOR, self.recovery.approve, CHARLIE, ALICE)

        self._make_validator(CHARLIE, "Charlie")
        self.recovery.approve(CHARLIE, ALICE)

        self.assertEqual(self.recovery.approval_count(ALICE), 1)

    def test_duplicate_approval_counts_once(self):
        self.recovery.initiate(ALICE, BOB)

        for _ in range(5):
            self.recovery.approve(VALIDATORS[0], ALICE)

        self.assertEqual(self.recovery.approval_count(ALICE), 1)
        self.assertEqual(self.validators.get_record(VALIDATORS[0]).validations, 1)
        self._assert_error(ErrorCode.INSUFFICIENT_APPROVALS, self.recovery.complete, BOB, ALICE)

    def test_quorum_reached_in_any_order(self):
        for order in itertools.permutations(VALIDATORS[:3]):
            with self.subTest(order=order):
                self.recovery.initiate(ALICE, ALICE)
                for count, validator in enumerate(order, start=1):
                    self.recovery.approve(validator, ALICE)
                    if count < RECOVERY_QUORUM:
                        self._assert_error(
                            ErrorCode.INSUFFICIENT_APPROVALS, self.recovery.complete, ALICE, ALICE
                        )
                self.recovery.complete(ALICE, ALICE)
                self.assertFalse(self.recovery.is_pending(ALICE))
                self.assertEqual(self.identities.get(ALICE).name, "Alice")

    def test_complete_with_more_than_quorum(self):
        self.recovery.initiate(ALICE, BOB)
        for validator in VALIDATORS:
            self.recovery.approve(validator, ALICE)

        self.recovery.complete(BOB, ALICE)

        self.assertEqual(self.identities.get(BOB).name, "Alice")

    def test_complete_requires_pending_request(self):
        self._assert_error(ErrorCode.INVALID_REQUEST, self.recovery.complete, BOB, ALICE)

    def test_only_new_address_can_complete(self):
        self.recovery.initiate(ALICE, BOB)
        for validator in VALIDATORS[:3]:
            self.recovery.approve(validator, ALICE)

        self._assert_error(ErrorCode.INVALID_REQUEST, self.recovery.complete, ALICE, ALICE)
        self._assert_error(ErrorCode.INVALID_REQUEST, self.recovery.complete, CHARLIE, ALICE)
        self.assertTrue(self.recovery.is_pending(ALICE))

    def test_rejected_completion_leaves_state_untouched(self):
        self.recovery.initiate(ALICE, BOB)
        self.recovery.approve(VALIDATORS[0], ALICE)
        self.recovery.approve(VALIDATORS[1], ALICE)
        before = self.state.to_dict()

        self._assert_error(ErrorCode.INSUFFICIENT_APPROVALS, self.recovery.complete, BOB, ALICE)

        self.assertEqual(self.state.to_dict(), before)

    def test_atomic_transfer(self):
        self.authority.enable_two_factor(ALICE)
        self.authority.verify(OWNER, ALICE)
        original = self.identities.get(ALICE)

        self.recovery.initiate(ALICE, BOB)
        for validator in VALIDATORS[:3]:
            self.recovery.approve(validator, ALICE)
        self.recovery.complete(BOB, ALICE)

        self.assertIsNone(self.identities.get(ALICE))
        self.assertEqual(self.identities.get(BOB), original)
        self.assertIsNone(self.recovery.get_request(ALICE))
        self.assertTrue(self.authority.is_verified(ALICE))
        self.assertFalse(self.authority.is_verified(BOB))

    def test_transfer_leaves_verification_of_new_address(self):
        self.identities.register(BOB, "Bob", "bob@example.com")
        self._make_validator(CHARLIE, "Charlie")
        verified_before = set(self.state.verified)

        self.recovery.initiate(BOB, CHARLIE)
        for validator in VALIDATORS[:3]:
            self.recovery.approve(validator, BOB)
        self.recovery.complete(CHARLIE, BOB)

        self.assertEqual(self.state.verified, verified_before)
        self.assertTrue(self.authority.is_verified(CHARLIE))
        self.assertTrue(self.validators.is_validator(CHARLIE))
        self.assertEqual(self.identities.get(CHARLIE).name, "Bob")

        self.recovery.initiate(ALICE, BOB)
        self.recovery.approve(CHARLIE, ALICE)
        self.assertEqual(self.recovery.approval_count(ALICE), 1)

    def test_request_consumed_exactly_once(self):
        self.recovery.initiate(ALICE, BOB)
        for validator in VALIDATORS[:3]:
            self.recovery.approve(validator, ALICE)
        self.recovery.complete(BOB, ALICE)

        self._assert_error(ErrorCode.INVALID_REQUEST, self.recovery.complete, BOB, ALICE)
        self._assert_error(ErrorCode.NO_ACTIVE_RECOVERY, self.recovery.approve, VALIDATORS[0], ALICE)

    def test_transfer_replaces_identity_at_new_address(self):
        self.identities.register(BOB, "Bob", "bob@example.com")
        self.authority.verify(OWNER, BOB)

        self.recovery.initiate(ALICE, BOB)
        for validator in VALIDATORS[:3]:
            self.recovery.approve(validator, ALICE)
        self.recovery.complete(BOB, ALICE)

        identity = self.identities.get(BOB)
        self.assertEqual(identity.name, "Alice")
        self.assertFalse(identity.verified)
        self.assertTrue(self.authority.is_verified(BOB))


if __name__ == '__main__':
    unittest.main()
