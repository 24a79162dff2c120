import pytest

from instabill.domain.errors import ValidationError
from instabill.services.budget_guard import BudgetGuard


def test_null_budget_allows_everything():
    guard = BudgetGuard()
    assert guard.pre_check(1_000_000.0) is True


def test_pre_check_uses_epsilon_tolerance():
    guard = BudgetGuard(100.0)
    assert guard.pre_check(100.04) is True
    assert guard.pre_check(100.06) is False


def test_rejection_does_not_touch_shadow_total():
    guard = BudgetGuard(100.0)
    guard.commit(94.4)

    assert guard.pre_check(11.8) is False
    assert guard.shadow_total == pytest.approx(94.4)


def test_commit_closes_the_window_between_two_rapid_additions():
    guard = BudgetGuard(100.0)

    # both checks happen before any cart total recomputes
    assert guard.pre_check(60.0) is True
    guard.commit(60.0)
    assert guard.pre_check(60.0) is False


def test_reconcile_discards_drift():
    guard = BudgetGuard(100.0)
    guard.commit(50.0)
    guard.commit(20.0)

    guard.reconcile(42.5)
    assert guard.shadow_total == 42.5


def test_increase_requires_budget_and_positive_amount():
    guard = BudgetGuard()
    with pytest.raises(ValidationError):
        guard.increase(10.0)

    guard.set(100.0)
    with pytest.raises(ValidationError):
        guard.increase(0)

    assert guard.increase(50.0) == 150.0


def test_set_rejects_non_positive_amounts():
    guard = BudgetGuard()
    with pytest.raises(ValidationError):
        guard.set(0)
    with pytest.raises(ValidationError):
        guard.set(-5)


def test_clear_resets_budget_and_shadow():
    guard = BudgetGuard(100.0)
    guard.commit(80.0)

    guard.clear()

    assert guard.budget is None
    assert guard.shadow_total == 0.0


@pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_amounts_are_rejected(amount):
    guard = BudgetGuard()
    with pytest.raises(ValidationError):
        guard.set(amount)

    guard.set(100.0)
    with pytest.raises(ValidationError):
        guard.increase(amount)
    assert guard.budget == 100.0
