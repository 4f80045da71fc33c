from decimal import Decimal

import pytest

from challan_engine.models import Challan
from challan_engine.models.base.enums import ChallanStatus
from challan_engine.models.challan import compute_total_amount


@pytest.mark.parametrize("current,target,allowed", [
    (ChallanStatus.PENDING, ChallanStatus.PAID, True),
    (ChallanStatus.PENDING, ChallanStatus.OVERDUE, True),
    (ChallanStatus.PENDING, ChallanStatus.CANCELLED, True),
    (ChallanStatus.OVERDUE, ChallanStatus.PAID, True),
    (ChallanStatus.OVERDUE, ChallanStatus.CANCELLED, False),
    (ChallanStatus.PAID, ChallanStatus.PENDING, False),
    (ChallanStatus.CANCELLED, ChallanStatus.PENDING, False),
    (ChallanStatus.CANCELLED, ChallanStatus.PAID, False),
])
def test_transitions(current, target, allowed):
    assert Challan(status=current).can_transition_to(target) is allowed


def test_total_is_clipped_at_zero():
    total = compute_total_amount(
        Decimal("1000"), Decimal("0"), Decimal("0"), Decimal("0"),
        discount=Decimal("1500"), previous_balance=Decimal("200"),
    )
    assert total == Decimal("0")


def test_total_includes_carried_balance():
    total = compute_total_amount(
        Decimal("3000"), Decimal("500"), Decimal("200"), Decimal("100"),
        discount=Decimal("300"), previous_balance=Decimal("1000"),
    )
    assert total == Decimal("4500")
