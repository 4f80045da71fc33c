import re

import pytest

from challan_engine.core.exceptions import ValidationError
from challan_engine.models import ChallanSequence
from challan_engine.services.billing import (
    ChallanNumberingService,
    format_challan_number,
    parse_sequence,
)
from challan_engine.services.billing.challan_numbering_service import SEQUENCE_NAME

NUMBER_FORMAT = re.compile(r"^[A-Z]{3}-\d{4}-\d{6}$")


def test_format():
    assert format_challan_number("2024-02", 123) == "FEB-2024-000123"
    assert format_challan_number("2023-12", 1) == "DEC-2023-000001"


@pytest.mark.parametrize("number,expected", [
    ("FEB-2024-000123", 123),
    ("JAN-2024-999999", 999999),
    ("LEGACY-1", None),
    ("FEB-2024-00A1", None),
    ("A-B-C-1", None),
    ("", None),
    (None, None),
])
def test_parse_sequence(number, expected):
    assert parse_sequence(number) == expected


def test_first_number_when_empty(db_session):
    number = ChallanNumberingService(db_session).next_number("2024-02")
    assert number == "FEB-2024-000001"


def test_numbers_increase_across_periods(db_session):
    service = ChallanNumberingService(db_session)
    numbers = [service.next_number(p) for p in ("2024-03", "2024-02", "2024-03")]

    assert all(NUMBER_FORMAT.match(n) for n in numbers)
    sequences = [parse_sequence(n) for n in numbers]
    assert sequences == [1, 2, 3]
    assert numbers[1].startswith("FEB-2024-")


def test_seeded_from_latest_number(db_session, make_student, make_challan):
    student = make_student()
    make_challan(student, challan_number="JAN-2024-000041")

    assert ChallanNumberingService(db_session).next_number("2024-02") == "FEB-2024-000042"


def test_legacy_number_restarts_sequence(db_session, make_student, make_challan):
    student = make_student()
    make_challan(student, challan_number="LEGACY-1")

    assert ChallanNumberingService(db_session).next_number("2024-02") == "FEB-2024-000001"


def test_exhausted_sequence(db_session):
    db_session.add(ChallanSequence(name=SEQUENCE_NAME, current_value=999999))
    db_session.commit()

    with pytest.raises(ValidationError):
        ChallanNumberingService(db_session).next_number("2024-02")


def test_malformed_period(db_session):
    with pytest.raises(ValidationError):
        ChallanNumberingService(db_session).next_number("2024-13")


def test_restarted_sequence_steps_over_taken_numbers(db_session, make_student, make_challan):
    student = make_student()
    make_challan(student, month="2023-11", challan_number="FEB-2024-000001")
    make_challan(student, month="2023-12", challan_number="LEGACY42")
    service = ChallanNumberingService(db_session)

    assert service.next_number("2024-02") == "FEB-2024-000002"
    assert service.next_number("2024-02") == "FEB-2024-000003"
    assert service.next_number("2024-03") == "MAR-2024-000004"
