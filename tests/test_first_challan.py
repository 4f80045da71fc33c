from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from challan_engine.models import Challan, FeeStructure
from challan_engine.models.base.enums import ChallanType, FeeCategory
from challan_engine.schemas.challan import FirstChallanRequest
from challan_engine.services.base import ErrorCode
from challan_engine.services.billing import FirstChallanService

TODAY = date(2024, 2, 3)


@pytest.fixture
def service(db_session):
    return FirstChallanService(db_session)


def request_for(student, **kwargs):
    kwargs.setdefault("admission_fee", Decimal("2000"))
    return FirstChallanRequest(student_id=student.id, class_id=student.class_id, **kwargs)


def test_opening_challan(service, make_student):
    student = make_student(tuition=Decimal("3000"), exam=Decimal("1001"), other=Decimal("900"))

    result = service.generate_first_challan(request_for(student), today=TODAY)

    challan = result.data
    assert challan.month == "2024-02"
    assert challan.admission_fee == Decimal("2000")
    assert challan.monthly_fee == Decimal("3000")
    assert challan.exam_fee == Decimal("1001")
    assert challan.other_fees == Decimal("0")
    assert challan.previous_balance == Decimal("0")
    assert challan.total_amount == Decimal("6001")
    assert challan.is_first_challan is True
    assert challan.challan_type == ChallanType.FIRST_ADMISSION
    assert challan.due_date == TODAY + timedelta(days=15)
    assert challan.notes == "First challan - New admission for February 2024"


def test_retried_approval_is_idempotent(service, make_student, db_session):
    student = make_student()

    first = service.generate_first_challan(request_for(student), today=TODAY)
    second = service.generate_first_challan(request_for(student), today=TODAY)

    assert first.is_success
    assert not second.is_success
    assert second.error.code == ErrorCode.DUPLICATE_BILLING
    assert db_session.query(Challan).filter_by(student_id=student.id).count() == 1


def test_discount_applied(service, make_student):
    student = make_student(tuition=Decimal("3000"))

    result = service.generate_first_challan(
        request_for(student, discount=Decimal("500")), today=TODAY,
    )
    assert result.data.total_amount == Decimal("4500")


def test_explicit_period(service, make_student):
    student = make_student()
    result = service.generate_first_challan(request_for(student, period="2024-04"), today=TODAY)
    assert result.data.challan_number.startswith("APR-2024-")


def test_catalog_fallback_without_snapshot(service, make_student, school_class, db_session):
    db_session.add_all([
        FeeStructure(class_id=school_class.id, category=FeeCategory.TUITION,
                     amount=Decimal("2500"), effective_from=date(2023, 1, 1), version=1),
        FeeStructure(class_id=school_class.id, category=FeeCategory.TUITION,
                     amount=Decimal("2800"), effective_from=date(2024, 1, 1), version=2),
        FeeStructure(class_id=school_class.id, category=FeeCategory.TUITION,
                     amount=Decimal("9999"), effective_from=date(2024, 6, 1), version=3),
        FeeStructure(class_id=school_class.id, category=FeeCategory.EXAM,
                     amount=Decimal("600"), effective_from=date(2023, 1, 1), version=1),
    ])
    db_session.commit()
    student = make_student(tuition=None)

    challan = service.generate_first_challan(request_for(student), today=TODAY).data

    assert challan.monthly_fee == Decimal("2800")
    assert challan.exam_fee == Decimal("600")
    assert challan.total_amount == Decimal("5400")


def test_custom_tuition_overrides_catalog(service, make_student, school_class, db_session):
    db_session.add(FeeStructure(class_id=school_class.id, category=FeeCategory.TUITION,
                                amount=Decimal("2800"), effective_from=date(2023, 1, 1), version=1))
    db_session.commit()
    student = make_student(tuition=None, use_custom_fees=True, custom_tuition=Decimal("1500"))

    challan = service.generate_first_challan(request_for(student), today=TODAY).data

    assert challan.monthly_fee == Decimal("1500")


def test_unknown_class(service, make_student):
    student = make_student()
    request = FirstChallanRequest(
        student_id=student.id, class_id=uuid4(), admission_fee=Decimal("0"),
    )
    result = service.generate_first_challan(request, today=TODAY)
    assert result.error.code == ErrorCode.NOT_FOUND


def test_unknown_student(service, school_class):
    request = FirstChallanRequest(
        student_id=uuid4(), class_id=school_class.id, admission_fee=Decimal("0"),
    )
    assert service.generate_first_challan(request).error.code == ErrorCode.NOT_FOUND


def test_catalog_fallback_uses_billed_period(service, make_student, school_class, db_session):
    db_session.add_all([
        FeeStructure(class_id=school_class.id, category=FeeCategory.TUITION,
                     amount=Decimal("2800"), effective_from=date(2024, 1, 1), version=1),
        FeeStructure(class_id=school_class.id, category=FeeCategory.TUITION,
                     amount=Decimal("3200"), effective_from=date(2024, 6, 1), version=2),
    ])
    db_session.commit()
    student = make_student(tuition=None)

    challan = service.generate_first_challan(
        request_for(student, period="2024-06", admission_fee=Decimal("0")), today=TODAY,
    ).data

    assert challan.month == "2024-06"
    assert challan.monthly_fee == Decimal("3200")
