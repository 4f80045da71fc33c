from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from challan_engine.core.config import settings
from challan_engine.models import Challan
from challan_engine.models.base.enums import ChallanStatus, FeeCategory, StudentStatus
from challan_engine.schemas.challan import (
    BatchGenerateRequest,
    BatchPreviewRequest,
    IndividualChallanRequest,
)
from challan_engine.services.base import ErrorCode
from challan_engine.services.billing import ChallanGenerationService, parse_sequence


@pytest.fixture
def generator(db_session):
    return ChallanGenerationService(db_session)


def batch(month="2024-02", categories=(FeeCategory.TUITION,), **kwargs):
    return BatchGenerateRequest(
        month=month,
        categories=list(categories),
        due_date=date(2024, 2, 10),
        **kwargs,
    )


def challans_for(db_session, student, month="2024-02"):
    return db_session.query(Challan).filter_by(student_id=student.id, month=month).all()


class TestBatchGeneration:

    def test_snapshot_tuition_less_discount(self, generator, make_student, db_session):
        student = make_student(tuition=Decimal("5000"), discount=Decimal("500"))

        result = generator.generate_batch(batch())

        assert result.data.success_count == 1
        assert result.data.failure_count == 0
        (challan,) = challans_for(db_session, student)
        assert challan.total_amount == Decimal("4500")
        assert challan.discount == Decimal("500")
        assert challan.status == ChallanStatus.PENDING

    def test_custom_tuition_less_discount(self, generator, make_student, db_session):
        student = make_student(
            tuition=Decimal("5000"),
            discount=Decimal("500"),
            use_custom_fees=True,
            custom_tuition=Decimal("4000"),
        )

        generator.generate_batch(batch())

        (challan,) = challans_for(db_session, student)
        assert challan.total_amount == Decimal("3500")

    def test_existing_period_reported_with_name(self, generator, make_student, make_challan, db_session):
        student = make_student(name="Sara Ahmed")
        make_challan(student, month="2024-02")

        result = generator.generate_batch(batch())

        assert result.data.success_count == 0
        assert result.data.failure_count == 1
        assert "Sara Ahmed" in result.data.errors[0]
        assert result.data.errors[0] == "Challan already exists for Sara Ahmed"
        assert len(challans_for(db_session, student)) == 1

    def test_carry_forward_of_unpaid_balance(self, generator, make_student, make_challan, db_session):
        student = make_student(tuition=Decimal("3000"))
        make_challan(student, month="2024-01", total=Decimal("1000"))

        generator.generate_batch(batch(carry_forward=True))

        (challan,) = challans_for(db_session, student)
        assert challan.previous_balance == Decimal("1000")
        assert challan.total_amount == Decimal("4000")

    def test_carry_forward_includes_overdue_and_skips_paid(
        self, generator, make_student, make_challan, db_session,
    ):
        student = make_student(tuition=Decimal("3000"))
        make_challan(student, month="2023-11", total=Decimal("700"), status=ChallanStatus.PAID)
        make_challan(student, month="2023-12", total=Decimal("400"), status=ChallanStatus.OVERDUE)
        make_challan(student, month="2024-01", total=Decimal("100"), status=ChallanStatus.CANCELLED)
        make_challan(student, month="2024-03", total=Decimal("900"))

        generator.generate_batch(batch(carry_forward=True))

        (challan,) = challans_for(db_session, student)
        assert challan.previous_balance == Decimal("400")
        assert challan.total_amount == Decimal("3400")

    def test_carry_forward_disabled(self, generator, make_student, make_challan, db_session):
        student = make_student(tuition=Decimal("3000"))
        make_challan(student, month="2024-01", total=Decimal("1000"))

        generator.generate_batch(batch(carry_forward=False))

        (challan,) = challans_for(db_session, student)
        assert challan.previous_balance == Decimal("0")
        assert challan.total_amount == Decimal("3000")

    def test_partial_failure_keeps_other_students(self, generator, make_student, db_session):
        good = make_student(name="Good Student")
        bad = make_student(name="Bad Snapshot", tuition=Decimal("-1"))
        other = make_student(name="Other Student")

        result = generator.generate_batch(batch())

        assert result.data.success_count == 2
        assert result.data.failure_count == 1
        assert result.data.errors[0].startswith("Error for Bad Snapshot:")
        assert len(challans_for(db_session, good)) == 1
        assert len(challans_for(db_session, other)) == 1
        assert challans_for(db_session, bad) == []

    def test_numbers_follow_processing_order(self, generator, make_student, db_session):
        students = [make_student(name=f"Student {i}") for i in range(3)]

        generator.generate_batch(batch())

        by_student = {
            c.student_id: parse_sequence(c.challan_number)
            for c in db_session.query(Challan).all()
        }
        ordered = [by_student[s.id] for s in sorted(students, key=lambda s: s.id)]
        assert ordered == [1, 2, 3]

    def test_legacy_numbers_do_not_block_batch(self, generator, make_student, make_challan, db_session):
        former = make_student(name="Former Student", status=StudentStatus.LEFT)
        make_challan(former, month="2023-11", challan_number="FEB-2024-000001")
        make_challan(former, month="2023-12", challan_number="LEGACY42")
        students = [make_student(name=name) for name in ("A", "B", "C")]

        result = generator.generate_batch(batch())

        assert result.data.success_count == 3
        assert result.data.failure_count == 0
        numbers = sorted(challans_for(db_session, s)[0].challan_number for s in students)
        assert numbers == ["FEB-2024-000002", "FEB-2024-000003", "FEB-2024-000004"]

    def test_class_filter_and_inactive_students(
        self, generator, make_class, make_student, db_session,
    ):
        other_class = make_class("Class 6")
        in_class = make_student(name="In Class")
        make_student(name="Left School", status=StudentStatus.LEFT)
        outside = make_student(name="Other Class", klass=other_class)

        result = generator.generate_batch(batch(class_ids=[in_class.class_id]))

        assert result.data.success_count == 1
        assert len(challans_for(db_session, in_class)) == 1
        assert challans_for(db_session, outside) == []

    def test_error_messages_are_bounded(self, generator, make_student, monkeypatch):
        monkeypatch.setattr(settings.billing, "MAX_BATCH_ERROR_MESSAGES", 2)
        for i in range(4):
            make_student(name=f"Broken {i}", tuition=Decimal("-1"))

        result = generator.generate_batch(batch())

        assert result.data.failure_count == 4
        assert len(result.data.errors) == 2
        assert result.data.errors_truncated is True

    def test_chunked_cohort(self, generator, make_student, monkeypatch):
        monkeypatch.setattr(settings.billing, "BATCH_CHUNK_SIZE", 2)
        for i in range(5):
            make_student(name=f"Student {i}")

        assert generator.generate_batch(batch()).data.success_count == 5

    def test_default_due_date(self, generator, make_student, db_session):
        student = make_student()
        request = BatchGenerateRequest(month="2024-02", categories=[FeeCategory.TUITION])

        generator.generate_batch(request)

        (challan,) = challans_for(db_session, student)
        assert challan.due_date == generator.lifecycle.default_due_date()


class TestPreview:

    def test_extrapolates_from_sample(self, generator, make_student, make_challan, monkeypatch):
        monkeypatch.setattr(settings.billing, "PREVIEW_SAMPLE_SIZE", 2)
        students = [make_student(name=f"Student {i}", tuition=Decimal("1000")) for i in range(4)]
        first = sorted(students, key=lambda s: s.id)[0]
        make_challan(first, month="2024-01", total=Decimal("500"))

        result = generator.preview(BatchPreviewRequest(
            month="2024-02", categories=[FeeCategory.TUITION], carry_forward=True,
        ))

        estimate = result.data
        assert result.metadata["is_estimate"] is True
        assert estimate.is_estimate is True
        assert estimate.sample_size == 2
        assert estimate.estimated_total_students == 4
        assert estimate.estimated_average == Decimal("1250.00")
        assert estimate.estimated_total_amount == Decimal("5000.00")
        assert estimate.sample_students_with_carried_balance == 1
        assert estimate.estimated_students_with_carried_balance == 2

    def test_writes_nothing(self, generator, make_student, db_session):
        make_student()
        generator.preview(BatchPreviewRequest(month="2024-02", categories=[FeeCategory.TUITION]))
        assert db_session.query(Challan).count() == 0

    def test_empty_cohort(self, generator):
        result = generator.preview(BatchPreviewRequest(
            month="2024-02", categories=[FeeCategory.TUITION],
        ))
        assert result.data.estimated_total_students == 0
        assert result.data.estimated_total_amount == Decimal("0")


class TestIndividual:

    def test_tuition_always_included(self, generator, make_student):
        student = make_student(tuition=Decimal("3000"), exam=Decimal("1000"))

        result = generator.generate_for_student(IndividualChallanRequest(
            student_id=student.id,
            month="2024-02",
            categories=[FeeCategory.EXAM],
        ))

        assert result.data.monthly_fee == Decimal("3000")
        assert result.data.exam_fee == Decimal("1000")
        assert result.data.total_amount == Decimal("4000")

    def test_overrides_and_discount(self, generator, make_student):
        student = make_student(tuition=Decimal("3000"), other=Decimal("1000"), discount=Decimal("100"))

        result = generator.generate_for_student(IndividualChallanRequest(
            student_id=student.id,
            month="2024-02",
            categories=[FeeCategory.OTHER],
            amount_overrides={FeeCategory.SPORTS: Decimal("50")},
            discount_override=Decimal("0"),
        ))

        challan = result.data
        assert challan.other_fees == Decimal("750")
        assert challan.discount == Decimal("0")
        assert challan.total_amount == Decimal("3750")

    def test_override_for_unselected_category(self, generator, make_student, db_session):
        student = make_student()

        result = generator.generate_for_student(IndividualChallanRequest(
            student_id=student.id,
            month="2024-02",
            amount_overrides={FeeCategory.SPORTS: Decimal("50")},
        ))

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert db_session.query(Challan).count() == 0

    def test_duplicate_period(self, generator, make_student, make_challan):
        student = make_student()
        make_challan(student, month="2024-02")

        result = generator.generate_for_student(IndividualChallanRequest(
            student_id=student.id, month="2024-02",
        ))
        assert result.error.code == ErrorCode.DUPLICATE_BILLING

    def test_unknown_student(self, generator):
        result = generator.generate_for_student(IndividualChallanRequest(
            student_id=uuid4(), month="2024-02",
        ))
        assert result.error.code == ErrorCode.NOT_FOUND
