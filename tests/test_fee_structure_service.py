from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from challan_engine.models.base.enums import FeeCategory
from challan_engine.schemas.fee_structure import FeeStructureCreate
from challan_engine.services.base import ErrorCode
from challan_engine.services.billing import FeeStructureService


@pytest.fixture
def service(db_session):
    return FeeStructureService(db_session)


def create(service, class_id, amount, effective_from, category=FeeCategory.TUITION):
    return service.create_version(FeeStructureCreate(
        class_id=class_id,
        category=category,
        amount=Decimal(amount),
        effective_from=effective_from,
    ))


def test_versions_are_appended(service, school_class):
    first = create(service, school_class.id, "2500", date(2023, 1, 1)).data
    second = create(service, school_class.id, "2800", date(2024, 1, 1)).data
    exam = create(service, school_class.id, "600", date(2024, 1, 1), FeeCategory.EXAM).data

    assert (first.version, second.version, exam.version) == (1, 2, 1)
    assert first.amount == Decimal("2500")


def test_active_version_by_date(service, school_class):
    create(service, school_class.id, "2500", date(2023, 1, 1))
    create(service, school_class.id, "2800", date(2024, 1, 1))

    assert service.get_active(school_class.id, FeeCategory.TUITION, date(2023, 6, 1)).data.amount == Decimal("2500")
    assert service.get_active(school_class.id, FeeCategory.TUITION, date(2024, 6, 1)).data.amount == Decimal("2800")


def test_no_active_version(service, school_class):
    result = service.get_active(school_class.id, FeeCategory.TUITION, date(2024, 1, 1))
    assert result.error.code == ErrorCode.NOT_FOUND


def test_history_newest_first(service, school_class):
    create(service, school_class.id, "2500", date(2023, 1, 1))
    create(service, school_class.id, "2800", date(2024, 1, 1))

    history = service.history(school_class.id).data
    assert [s.version for s in history] == [2, 1]


def test_unknown_class(service):
    result = create(service, uuid4(), "100", date(2024, 1, 1))
    assert result.error.code == ErrorCode.NOT_FOUND
