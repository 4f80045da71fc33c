"""
Shared fixtures: an in-memory SQLite database per test, a session bound
to it and builders for classes, students and challans.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from challan_engine.core.database import create_db_engine, get_db
from challan_engine.models import Base, Challan, SchoolClass, Student
from challan_engine.models.base.enums import ChallanStatus, StudentStatus


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://", echo=False)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    factory = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    session = factory()
    yield session
    session.close()


@pytest.fixture
def make_class(db_session):
    def _make(class_name: str = "Class 5") -> SchoolClass:
        school_class = SchoolClass(class_name=class_name)
        db_session.add(school_class)
        db_session.commit()
        return school_class
    return _make


@pytest.fixture
def school_class(make_class):
    return make_class()


@pytest.fixture
def make_student(db_session, school_class):
    def _make(
        name: str = "Ali Khan",
        tuition: Optional[Decimal] = Decimal("5000"),
        admission: Optional[Decimal] = Decimal("0"),
        exam: Optional[Decimal] = Decimal("0"),
        other: Optional[Decimal] = Decimal("0"),
        discount: Decimal = Decimal("0"),
        use_custom_fees: bool = False,
        custom_tuition: Optional[Decimal] = None,
        status: StudentStatus = StudentStatus.ACTIVE,
        klass: Optional[SchoolClass] = None,
    ) -> Student:
        student = Student(
            name=name,
            class_id=(klass or school_class).id,
            status=status,
            original_tuition_fee=tuition,
            original_admission_fee=admission if tuition is not None else None,
            original_exam_fee=exam if tuition is not None else None,
            original_other_fee=other if tuition is not None else None,
            use_custom_fees=use_custom_fees,
            custom_tuition_fee=custom_tuition,
            fee_discount=discount,
        )
        db_session.add(student)
        db_session.commit()
        return student
    return _make


@pytest.fixture
def make_challan(db_session):
    """Insert a challan row directly, bypassing numbering and the guard."""
    counter = {"value": 900000}

    def _make(
        student: Student,
        month: str = "2024-01",
        total: Decimal = Decimal("1000"),
        status: ChallanStatus = ChallanStatus.PENDING,
        due_date: date = date(2024, 1, 10),
        challan_number: Optional[str] = None,
    ) -> Challan:
        counter["value"] += 1
        challan = Challan(
            challan_number=challan_number or f"ZZZ-2000-{counter['value']:06d}",
            student_id=student.id,
            month=month,
            monthly_fee=total,
            total_amount=total,
            status=status,
            due_date=due_date,
        )
        db_session.add(challan)
        db_session.commit()
        return challan
    return _make


@pytest.fixture
def client(db_session):
    from challan_engine.main import create_app

    app = create_app()

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    return TestClient(app)
