from app.core.config import settings
from app.domain.savings import services
from app.services.analytics import (
    build_savings_boxes_stats,
    build_savings_boxes_summary,
    build_savings_transactions_stats,
    get_savings_boxes_total,
)


async def test_total_ignores_inactive_and_foreign_boxes(db, user, other_user, make_box):
    await make_box(name="A", current="10.50")
    await make_box(name="B", current="4.50")
    await make_box(name="Retired", current="100", is_active=False)
    await make_box(name="Theirs", current="999", owner=other_user)

    assert await get_savings_boxes_total(user.id, db) == 1500


async def test_total_without_boxes_is_zero(db, user):
    assert await get_savings_boxes_total(user.id, db) == 0


async def test_summary_orders_by_balance_and_reports_links(
    db, user, make_box, make_account, make_goal
):
    account = await make_account()
    small = await make_box(name="Small", current="10", target="100")
    big = await make_box(name="Big", current="500", target="250")
    await make_goal(account, name="Linked goal", box=small)

    summary = await build_savings_boxes_summary(user.id, db)

    assert [row["name"] for row in summary] == ["Big", "Small"]
    assert summary[0]["id"] == big.id
    assert summary[0]["progress_percentage"] == 100
    assert summary[0]["is_goal_linked"] is False
    assert summary[1]["progress_percentage"] == 10
    assert summary[1]["linked_goal"]["name"] == "Linked goal"
    assert summary[1]["color"] == settings.DEFAULT_BOX_COLOR


async def test_summary_respects_limit(db, user, make_box):
    for index in range(settings.SUMMARY_LIMIT + 2):
        await make_box(name=f"Box {index}", current=str(index))

    assert len(await build_savings_boxes_summary(user.id, db)) == settings.SUMMARY_LIMIT
    assert len(await build_savings_boxes_summary(user.id, db, limit=2)) == 2


async def test_box_stats(db, user, make_box, make_account, make_goal):
    account = await make_account()
    done = await make_box(name="Done", current="100", target="100")
    await make_box(name="Half", current="50", target="100")
    await make_box(name="No target", current="7")
    await make_goal(account, box=done)

    stats = await build_savings_boxes_stats(user.id, db)

    assert stats == {
        "total_boxes": 3,
        "total_amount": 15700,
        "total_with_goals": 1,
        "total_completed_goals": 1,
        "average_completion": 75,
    }


async def test_transaction_stats(db, user, make_box):
    source = await make_box(current="100")
    target = await make_box(name="Target")
    await services.deposit_to_savings_box(db, user_id=user.id, box_id=source.id, amount=10)
    await services.deposit_to_savings_box(db, user_id=user.id, box_id=source.id, amount=5)
    await services.withdraw_from_savings_box(db, user_id=user.id, box_id=source.id, amount=3)
    await services.transfer_between_boxes(
        db, user_id=user.id, from_box_id=source.id, to_box_id=target.id, amount=20
    )

    stats = await build_savings_transactions_stats(user.id, db)
    target_only = await build_savings_transactions_stats(user.id, db, box_id=target.id)

    assert stats == {
        "total_transactions": 4,
        "total_deposits": 2,
        "total_withdraws": 1,
        "total_transfers": 1,
        "total_deposited": 1500,
        "total_withdrawn": 300,
        "total_transferred": 2000,
    }
    assert target_only["total_transactions"] == 1
    assert target_only["total_transferred"] == 2000
