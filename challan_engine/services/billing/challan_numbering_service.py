"""
Challan Numbering Service

Numbers look like ``FEB-2024-000123``: billing month, billing year and a
six digit sequence. The sequence is global rather than per period, so
numbers grow in creation order; a FEB challan created after a MAR run
carries the higher number.
"""

from typing import Optional

from sqlalchemy.orm import Session

from challan_engine.services.base import BaseService
from challan_engine.repositories.challan import ChallanRepository, ChallanSequenceRepository
from challan_engine.core.exceptions import ValidationError
from challan_engine.core.validators import period_month_abbreviation, period_parts


SEQUENCE_NAME = "challan_number"
MAX_SEQUENCE = 999999


def format_challan_number(period: str, sequence: int) -> str:
    year, _ = period_parts(period)
    return f"{period_month_abbreviation(period)}-{year:04d}-{sequence:06d}"


def parse_sequence(challan_number: Optional[str]) -> Optional[int]:
    """
    Trailing sequence of a challan number.

    Returns None for hand-entered or legacy numbers that are not exactly
    three dash separated segments ending in digits.
    """
    if not challan_number:
        return None
    parts = challan_number.split("-")
    if len(parts) != 3 or not parts[2].isdigit():
        return None
    return int(parts[2])


class ChallanNumberingService(BaseService):
    """
    Mints challan numbers from the storage-backed sequence.

    The counter row is seeded once from the newest existing challan
    number. When that number cannot be parsed the counter restarts so
    the next number is 1 and numbers still in use are stepped over.
    """

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.sequences = ChallanSequenceRepository(db_session)
        self.challans = ChallanRepository(db_session)

    def next_number(self, period: str) -> str:
        """
        Reserve the next number for a challan billed in ``period``.

        Runs inside the caller's transaction; a rollback releases it.
        Numbers already on a challan are skipped, which happens after the
        sequence restarts below older numbers.

        Raises:
            ValidationError: malformed period or exhausted sequence
        """
        period_parts(period)
        while True:
            sequence = self.sequences.next_value(SEQUENCE_NAME, seed=self._seed_from_existing)
            if sequence > MAX_SEQUENCE:
                raise ValidationError(
                    f"Challan number sequence exhausted ({sequence} > {MAX_SEQUENCE})",
                    field_errors={"challan_number": ["sequence exhausted"]},
                )

            number = format_challan_number(period, sequence)
            if not self.challans.number_exists(number):
                return number

            self._logger.warning(
                "Challan number already taken, advancing sequence",
                extra={"challan_number": number},
            )

    def _seed_from_existing(self) -> int:
        latest = self.challans.latest_challan_number()
        if latest is None:
            return 0

        sequence = parse_sequence(latest)
        if sequence is None:
            self._logger.warning(
                "Latest challan number is not in MON-YYYY-NNNNNN form, restarting sequence at 1",
                extra={"latest_number": latest},
            )
            return 0
        return sequence
