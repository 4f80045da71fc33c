from datetime import date

from sqlalchemy.orm import sessionmaker

from challan_engine.core import background_tasks
from challan_engine.core.background_tasks import SWEEP_OVERDUE_TASK, celery_app, sweep_overdue_challans
from challan_engine.models import Challan
from challan_engine.models.base.enums import ChallanStatus


def test_sweep_scheduled_daily():
    entry = celery_app.conf.beat_schedule["sweep-overdue-challans"]
    assert entry["task"] == SWEEP_OVERDUE_TASK


def test_sweep_task_marks_overdue(engine, db_session, make_student, make_challan, monkeypatch):
    factory = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    monkeypatch.setattr(background_tasks.db_manager, "get_session", factory)

    challan = make_challan(make_student(), due_date=date(2024, 1, 10))

    result = sweep_overdue_challans.apply(args=("2024-02-01",))

    assert result.get() == 1
    db_session.expire_all()
    assert db_session.get(Challan, challan.id).status == ChallanStatus.OVERDUE
