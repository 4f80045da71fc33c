from datetime import date
from decimal import Decimal

import pytest

from challan_engine.models import Challan
from challan_engine.models.base.enums import ChallanStatus, StudentStatus
from challan_engine.services.base import ErrorCode
from challan_engine.services.billing import CollectionReportService

AS_OF = date(2024, 3, 20)


@pytest.fixture
def reports(db_session):
    return CollectionReportService(db_session)


def test_unpaid_students_grouped_and_sorted(reports, make_student, make_challan):
    late = make_student(name="Zain Late")
    make_challan(late, month="2024-01", total=Decimal("1000"), due_date=date(2024, 1, 10),
                 status=ChallanStatus.OVERDUE)
    make_challan(late, month="2024-02", total=Decimal("1200"), due_date=date(2024, 2, 10))

    recent = make_student(name="Amna Recent")
    make_challan(recent, month="2024-03", total=Decimal("800"), due_date=date(2024, 3, 10))

    settled = make_student(name="Paid Up")
    make_challan(settled, month="2024-02", status=ChallanStatus.PAID)

    report = reports.unpaid_students(AS_OF).data

    assert [e.student_name for e in report.students] == ["Zain Late", "Amna Recent"]
    first = report.students[0]
    assert first.challan_count == 2
    assert first.total_unpaid == Decimal("2200")
    assert first.oldest_due_date == date(2024, 1, 10)
    assert first.days_overdue == 70
    assert report.total_unpaid == Decimal("3000")
    assert report.critical_count == 1


def test_not_yet_due_counts_zero_days(reports, make_student, make_challan):
    student = make_student()
    make_challan(student, month="2024-04", due_date=date(2024, 4, 10))

    entry = reports.unpaid_students(AS_OF).data.students[0]
    assert entry.days_overdue == 0


def test_payment_reminders_sweeps_first(reports, make_student, make_challan, db_session):
    student = make_student(name="Ali Khan")
    past_due = make_challan(student, month="2024-02", total=Decimal("1000"), due_date=date(2024, 3, 1))
    make_challan(student, month="2024-03", total=Decimal("500"), due_date=date(2024, 3, 25))
    make_challan(student, month="2024-04", total=Decimal("700"), due_date=date(2024, 4, 30))

    report = reports.payment_reminders(AS_OF).data

    assert report.stats.swept_count == 1
    assert [r.challan_number for r in report.overdue] == [past_due.challan_number]
    assert report.overdue[0].days_overdue == 19
    assert report.stats.overdue_amount == Decimal("1000")
    assert [r.month for r in report.due_soon] == ["2024-03"]
    assert report.due_soon[0].days_until_due == 5
    assert report.stats.due_soon_amount == Decimal("500")

    db_session.expire_all()
    assert db_session.get(Challan, past_due.id).status == ChallanStatus.OVERDUE


def test_empty_reports(reports):
    unpaid = reports.unpaid_students(AS_OF).data
    assert unpaid.students == []
    assert unpaid.total_unpaid == Decimal("0")

    reminders = reports.payment_reminders(AS_OF).data
    assert reminders.stats.overdue_count == 0
    assert reminders.stats.due_soon_count == 0


def test_unbilled_students(reports, make_class, make_student, make_challan):
    billed = make_student(name="Billed")
    make_challan(billed, month="2024-03")
    reissue = make_student(name="Cancelled Only")
    make_challan(reissue, month="2024-03", status=ChallanStatus.CANCELLED)
    earlier = make_student(name="Earlier Month")
    make_challan(earlier, month="2024-02")
    make_student(name="Left School", status=StudentStatus.LEFT)
    senior = make_class("Class 9")
    make_student(name="Abid Senior", klass=senior)

    report = reports.unbilled_students("2024-03").data

    assert [e.student_name for e in report.students] == ["Abid Senior", "Cancelled Only", "Earlier Month"]
    assert report.total_count == 3
    assert report.students[0].class_name == "Class 9"

    filtered = reports.unbilled_students("2024-03", class_ids=[senior.id]).data
    assert [e.student_name for e in filtered.students] == ["Abid Senior"]


def test_unbilled_students_bad_month(reports):
    assert reports.unbilled_students("2024-13").error.code == ErrorCode.VALIDATION_ERROR
