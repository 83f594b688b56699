from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.core.results import ErrorKind
from app.domain.goals import services
from app.domain.goals.schemas import GoalCreate, GoalUpdate
from app.domain.goals.services import link_transition
from app.domain.savings import services as savings
from app.domain.transactions.models import Transaction


def _goal_payload(account_id, **overrides):
    payload = {
        "name": "New car",
        "target_amount": Decimal("1000"),
        "target_date": date.today() + timedelta(days=90),
        "account_id": account_id,
    }
    payload.update(overrides)
    return GoalCreate(**payload)


@pytest.mark.parametrize(
    "previous,new,expected",
    [
        (None, 1, "linking"),
        (1, None, "unlinking"),
        (1, 2, "relinking"),
        (1, 1, "no-op"),
        (None, None, "no-op"),
    ],
)
def test_link_transition(previous, new, expected):
    assert link_transition(previous, new) == expected


async def test_create_goal(db, user, make_account):
    account = await make_account()

    result = await services.create_goal(db, user_id=user.id, data=_goal_payload(account.id))

    assert result.success, result.error
    goal = result.data
    assert goal.target_amount == 100000
    assert goal.current_amount == 0
    assert goal.start_date == date.today()
    assert goal.is_completed is False


async def test_create_goal_linked_to_box_mirrors_balance(db, user, make_account, make_box):
    account = await make_account()
    box = await make_box(current="1200")

    result = await services.create_goal(
        db, user_id=user.id, data=_goal_payload(account.id, savings_box_id=box.id)
    )

    assert result.data.current_amount == 120000
    assert result.data.is_completed is True


async def test_create_goal_rejects_inactive_box(db, user, make_account, make_box):
    account = await make_account()
    box = await make_box(is_active=False)

    result = await services.create_goal(
        db, user_id=user.id, data=_goal_payload(account.id, savings_box_id=box.id)
    )

    assert result.kind == ErrorKind.INACTIVE_ENTITY


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": " "},
        {"target_amount": Decimal("0")},
        {"start_date": date.today() + timedelta(days=200)},
    ],
)
async def test_create_goal_invalid_input(db, user, make_account, overrides):
    account = await make_account()

    result = await services.create_goal(db, user_id=user.id, data=_goal_payload(account.id, **overrides))

    assert result.kind == ErrorKind.INVALID_INPUT


async def test_create_goal_with_foreign_account(db, user, other_user, make_account):
    foreign = await make_account(owner=other_user)

    result = await services.create_goal(db, user_id=user.id, data=_goal_payload(foreign.id))

    assert result.kind == ErrorKind.NOT_FOUND


async def test_link_copies_box_balance_and_unlink_keeps_it(
    db, user, make_account, make_box, make_goal
):
    account = await make_account()
    box = await make_box(current="1200")
    goal = await make_goal(account, target="2000", current="500")

    linked = await services.link_goal_to_savings_box(db, user_id=user.id, goal_id=goal.id, box_id=box.id)
    assert linked.success
    assert linked.data.transition == "linking"
    assert linked.data.goal.current_amount == 120000
    assert linked.data.goal.savings_box_id == box.id

    unlinked = await services.link_goal_to_savings_box(db, user_id=user.id, goal_id=goal.id, box_id=None)
    assert unlinked.data.transition == "unlinking"
    assert unlinked.data.goal.savings_box_id is None
    assert unlinked.data.goal.current_amount == 120000


async def test_relink_to_another_box(db, user, make_account, make_box, make_goal):
    account = await make_account()
    first = await make_box(current="100")
    second = await make_box(name="Second", current="300")
    goal = await make_goal(account, box=first, current="100")

    result = await services.link_goal_to_savings_box(
        db, user_id=user.id, goal_id=goal.id, box_id=second.id
    )

    assert result.data.transition == "relinking"
    assert result.data.goal.current_amount == 30000


async def test_link_to_inactive_box_is_rejected(db, user, make_account, make_box, make_goal, reload):
    account = await make_account()
    box = await make_box(is_active=False)
    goal = await make_goal(account, current="5")

    result = await services.link_goal_to_savings_box(db, user_id=user.id, goal_id=goal.id, box_id=box.id)

    assert result.kind == ErrorKind.INACTIVE_ENTITY
    goal = await reload(goal)
    assert goal.savings_box_id is None
    assert goal.current_amount == 500


async def test_link_to_box_zero_is_not_found(db, user, make_account, make_box, make_goal, reload):
    account = await make_account()
    box = await make_box(current="300")
    goal = await make_goal(account, current="300", box=box)
    box_id = box.id

    result = await services.link_goal_to_savings_box(db, user_id=user.id, goal_id=goal.id, box_id=0)

    assert result.kind == ErrorKind.NOT_FOUND
    goal = await reload(goal)
    assert goal.savings_box_id == box_id
    assert goal.current_amount == 30000


async def test_create_goal_with_box_zero_is_not_found(db, user, make_account):
    account = await make_account()

    result = await services.create_goal(
        db, user_id=user.id, data=_goal_payload(account.id, savings_box_id=0)
    )

    assert result.kind == ErrorKind.NOT_FOUND


async def test_deposit_completes_linked_goal(db, user, make_account, make_box, make_goal, reload):
    account = await make_account()
    box = await make_box(current="800", target="1000")
    goal = await make_goal(account, target="1000", current="800", box=box)

    result = await savings.deposit_to_savings_box(db, user_id=user.id, box_id=box.id, amount=300)

    assert result.success
    assert (await reload(box)).current_amount == 110000
    goal = await reload(goal)
    assert goal.current_amount == 110000
    assert goal.is_completed is True


async def test_withdraw_reopens_linked_goal(db, user, make_account, make_box, make_goal, reload):
    account = await make_account()
    box = await make_box(current="1000")
    goal = await make_goal(account, target="1000", current="1000", box=box)

    await savings.withdraw_from_savings_box(db, user_id=user.id, box_id=box.id, amount=1)

    goal = await reload(goal)
    assert goal.current_amount == 99900
    assert goal.is_completed is False


async def test_transfer_syncs_goals_on_both_boxes(
    db, user, make_account, make_box, make_goal, reload
):
    account = await make_account()
    source = await make_box(current="500")
    target = await make_box(name="Target")
    source_goal = await make_goal(account, name="Source goal", current="500", box=source)
    target_goal = await make_goal(account, name="Target goal", box=target)

    await savings.transfer_between_boxes(
        db, user_id=user.id, from_box_id=source.id, to_box_id=target.id, amount=200
    )

    assert (await reload(source_goal)).current_amount == 30000
    assert (await reload(target_goal)).current_amount == 20000


async def test_contribute_to_linked_goal_deposits_into_its_box(
    db, user, make_account, make_box, make_goal, reload
):
    account = await make_account(balance="1000")
    box = await make_box()
    goal = await make_goal(account, name="Trip", target="100", box=box)

    result = await services.contribute_to_goal(db, user_id=user.id, goal_id=goal.id, amount="100")

    assert result.success, result.error
    assert result.data.current_amount == 10000
    assert result.data.is_completed is True
    assert (await reload(box)).current_amount == 10000
    assert (await reload(account)).balance == 90000

    history = await savings.list_savings_transactions(db, user_id=user.id, box_id=box.id)
    assert [tx.description for tx in history.data] == ["Contribution to goal: Trip"]


async def test_contribute_to_unlinked_goal_records_an_expense(
    db, user, make_account, make_goal, reload
):
    account = await make_account(balance="50")
    goal = await make_goal(account, target="100")

    result = await services.contribute_to_goal(db, user_id=user.id, goal_id=goal.id, amount="20")

    assert result.success
    assert result.data.current_amount == 2000
    assert (await reload(account)).balance == 3000

    expenses = (await db.execute(select(Transaction))).scalars().all()
    assert len(expenses) == 1
    assert expenses[0].goal_id == goal.id
    assert expenses[0].signed_amount == -2000
    assert expenses[0].category == services.GOAL_CONTRIBUTION_CATEGORY


async def test_contribute_beyond_account_balance(db, user, make_account, make_goal, reload):
    account = await make_account(balance="10")
    goal = await make_goal(account)

    result = await services.contribute_to_goal(db, user_id=user.id, goal_id=goal.id, amount="10.01")

    assert result.kind == ErrorKind.INSUFFICIENT_FUNDS
    assert (await reload(goal)).current_amount == 0
    assert (await reload(account)).balance == 1000
    assert (await db.execute(select(Transaction))).scalars().all() == []


async def test_contribute_rejects_non_positive_amount(db, user, make_account, make_goal):
    account = await make_account()
    goal = await make_goal(account)

    result = await services.contribute_to_goal(db, user_id=user.id, goal_id=goal.id, amount=0)

    assert result.kind == ErrorKind.INVALID_INPUT


async def test_update_goal_reevaluates_completion(db, user, make_account, make_goal):
    account = await make_account()
    goal = await make_goal(account, target="100", current="80")

    lowered = await services.update_goal(
        db, user_id=user.id, goal_id=goal.id, data=GoalUpdate(target_amount=Decimal("50"))
    )
    assert lowered.data.is_completed is True

    raised = await services.update_goal(
        db, user_id=user.id, goal_id=goal.id, data=GoalUpdate(target_amount=Decimal("500"))
    )
    assert raised.data.is_completed is False


async def test_update_goal_rejects_inverted_dates(db, user, make_account, make_goal):
    account = await make_account()
    goal = await make_goal(account)

    result = await services.update_goal(
        db,
        user_id=user.id,
        goal_id=goal.id,
        data=GoalUpdate(target_date=date.today() - timedelta(days=1)),
    )

    assert result.kind == ErrorKind.INVALID_INPUT


async def test_list_and_delete_goals(db, user, make_account, make_goal):
    account = await make_account()
    later = await make_goal(account, name="Later")
    goal_id = later.id

    listed = await services.list_goals(db, user_id=user.id)
    assert [goal.name for goal in listed.data] == ["Later"]

    deleted = await services.delete_goal(db, user_id=user.id, goal_id=goal_id)
    assert deleted.success

    missing = await services.get_goal(db, user_id=user.id, goal_id=goal_id)
    assert missing.kind == ErrorKind.NOT_FOUND


async def test_deleting_a_goal_keeps_its_expense_rows(db, user, make_account, make_goal):
    account = await make_account(balance="100")
    goal = await make_goal(account)
    goal_id = goal.id
    await services.contribute_to_goal(db, user_id=user.id, goal_id=goal_id, amount=5)

    result = await services.delete_goal(db, user_id=user.id, goal_id=goal_id)

    assert result.success
    expense = (await db.execute(select(Transaction))).scalar_one()
    await db.refresh(expense)
    assert expense.goal_id is None
