from decimal import Decimal
from uuid import uuid4

from challan_engine.models.base.enums import ChallanStatus

API = "/api/v1"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_batch_then_read_and_edit(client, make_student):
    student = make_student(tuition=Decimal("5000"), discount=Decimal("500"))
    operator = str(uuid4())

    response = client.post(f"{API}/challans/batch", json={
        "month": "2024-02",
        "categories": ["tuition"],
        "due_date": "2024-02-10",
    }, headers={"X-User-Id": operator})
    assert response.status_code == 200
    assert response.json()["success_count"] == 1

    listed = client.get(f"{API}/challans/students/{student.id}").json()
    assert len(listed) == 1
    challan = listed[0]
    assert challan["challan_number"] == "FEB-2024-000001"
    assert Decimal(challan["total_amount"]) == Decimal("4500")
    assert challan["generated_by"] == operator

    edited = client.patch(f"{API}/challans/{challan['id']}", json={
        "discount": "0",
        "expected_version": challan["version"],
    }, headers={"X-User-Id": operator})
    assert edited.status_code == 200
    assert Decimal(edited.json()["total_amount"]) == Decimal("5000")
    assert edited.json()["edit_count"] == 1

    stale = client.patch(f"{API}/challans/{challan['id']}", json={
        "discount": "100",
        "expected_version": challan["version"],
    })
    assert stale.status_code == 409
    assert stale.json()["detail"]["code"] == "CONFLICT"


def test_first_challan_twice(client, make_student):
    student = make_student()
    payload = {
        "student_id": str(student.id),
        "class_id": str(student.class_id),
        "admission_fee": "1500",
        "period": "2024-02",
    }

    first = client.post(f"{API}/challans/first", json=payload)
    second = client.post(f"{API}/challans/first", json=payload)

    assert first.status_code == 201
    assert first.json()["is_first_challan"] is True
    assert second.status_code == 409
    assert second.json()["detail"]["code"] == "DUPLICATE_BILLING"


def test_pay_then_cancel_rejected(client, make_student, make_challan):
    challan = make_challan(make_student())

    paid = client.post(f"{API}/challans/{challan.id}/pay", json={"paid_date": "2024-01-05"})
    assert paid.status_code == 200
    assert paid.json()["status"] == ChallanStatus.PAID.value

    cancelled = client.post(f"{API}/challans/{challan.id}/cancel", json={"reason": "late"})
    assert cancelled.status_code == 409
    assert cancelled.json()["detail"]["code"] == "INVALID_STATE"


def test_bulk_mark_paid_and_sweep(client, make_student, make_challan):
    student = make_student()
    make_challan(student, month="2024-01")
    make_challan(student, month="2024-02")

    swept = client.post(f"{API}/challans/sweep-overdue", params={"as_of": "2024-03-01"})
    assert swept.json()["updated_count"] == 2

    overdue = client.get(f"{API}/challans/students/{student.id}", params={"status": "overdue"})
    assert len(overdue.json()) == 2

    paid = client.post(f"{API}/challans/students/{student.id}/mark-paid", json={})
    assert paid.json()["updated_count"] == 2


def test_preview(client, make_student):
    make_student(tuition=Decimal("1000"))
    response = client.post(f"{API}/challans/preview", json={
        "month": "2024-02",
        "categories": ["tuition"],
    })
    assert response.status_code == 200
    body = response.json()
    assert body["is_estimate"] is True
    assert body["estimated_total_students"] == 1


def test_reports(client, make_student, make_challan):
    make_challan(make_student())

    unpaid = client.get(f"{API}/challans/reports/unpaid", params={"as_of": "2024-03-01"})
    assert unpaid.status_code == 200
    assert len(unpaid.json()["students"]) == 1

    reminders = client.get(f"{API}/challans/reports/reminders", params={"as_of": "2024-03-01"})
    assert reminders.status_code == 200
    assert reminders.json()["stats"]["overdue_count"] == 1


def test_fee_structure_routes(client, school_class):
    created = client.post(f"{API}/fee-structures", json={
        "class_id": str(school_class.id),
        "category": "tuition",
        "amount": "2500",
        "effective_from": "2024-01-01",
    })
    assert created.status_code == 201
    assert created.json()["version"] == 1

    active = client.get(
        f"{API}/fee-structures/classes/{school_class.id}/active",
        params={"category": "tuition", "as_of": "2024-02-01"},
    )
    assert Decimal(active.json()["amount"]) == Decimal("2500")

    history = client.get(f"{API}/fee-structures/classes/{school_class.id}/history")
    assert len(history.json()) == 1


def test_errors(client):
    assert client.get(f"{API}/challans/{uuid4()}").status_code == 404

    bad_actor = client.post(
        f"{API}/challans/batch",
        json={"month": "2024-02", "categories": ["tuition"]},
        headers={"X-User-Id": "not-a-uuid"},
    )
    assert bad_actor.status_code == 400

    bad_month = client.post(f"{API}/challans/batch", json={"month": "2024-13", "categories": ["tuition"]})
    assert bad_month.status_code == 422


def test_bulk_actions_and_unbilled_report(client, make_student, make_challan):
    student = make_student()
    first = make_challan(student, month="2024-01")
    second = make_challan(student, month="2024-02")
    make_student(name="Not Billed")

    edited = client.post(f"{API}/challans/bulk-edit", json={
        "challan_ids": [str(first.id), str(second.id)],
        "notes": "Fee waiver approved",
    })
    assert edited.status_code == 200
    assert edited.json()["success_count"] == 2

    paid = client.post(f"{API}/challans/bulk-pay", json={
        "challan_ids": [str(first.id)],
        "paid_date": "2024-01-08",
    })
    assert paid.json()["success_count"] == 1
    assert client.get(f"{API}/challans/{first.id}").json()["status"] == "paid"

    unbilled = client.get(f"{API}/challans/reports/unbilled", params={"month": "2024-02"})
    assert unbilled.status_code == 200
    assert [s["student_name"] for s in unbilled.json()["students"]] == ["Not Billed"]

    empty = client.post(f"{API}/challans/bulk-edit", json={"challan_ids": [str(first.id)]})
    assert empty.status_code == 422
