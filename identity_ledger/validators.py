"""
Validator registry: verified addresses that may approve recoveries.
"""
import logging
from typing import Optional

from identity_ledger.errors import ErrorCode, LedgerError
from identity_ledger.state import LedgerState, ValidatorRecord

logger = logging.getLogger(__name__)

INITIAL_TRUST_SCORE = 1


class ValidatorRegistry:
    def __init__(self, state: LedgerState):
        self.state = state

    def register_validator(self, caller: str):
        """
        Promote a verified address to validator.

        Re-registering overwrites the record, so the trust score and the
        validation count go back to their initial values.
        """
        if caller not in self.state.verified:
            raise LedgerError(ErrorCode.NOT_VERIFIED, f"{caller} is not verified")

        if caller in self.state.validators:
            logger.info(f"Validator {caller} re-registered; record reset")
        self.state.validators[caller] = ValidatorRecord(
            trust_score=INITIAL_TRUST_SCORE,
            validations=0,
        )
        logger.info(f"Validator {caller} registered with trust score {INITIAL_TRUST_SCORE}")

    def is_validator(self, address: str) -> bool:
        return address in self.state.validators

    def stats(self, address: str) -> Optional[int]:
        """Trust score of a validator, or None."""
        record = self.state.validators.get(address)
        return record.trust_score if record else None

    def get_record(self, address: str) -> Optional[ValidatorRecord]:
        record = self.state.validators.get(address)
        if record is None:
            return None
        return ValidatorRecord(record.trust_score, record.validations)

    def record_validation(self, address: str):
        self.state.validators[address].validations += 1

    def __len__(self) -> int:
        return len(self.state.validators)
