from datetime import datetime, timedelta

import pytest
from bson import ObjectId

from core.exceptions import NotFoundError
from services.deal_reports import (
    daily_average,
    derive_active_summary,
    derive_detail,
    derive_expired_summary,
    get_deal_detail,
    list_active_deals,
    list_expired_deals,
)
from utils.dates import day_diff
from conftest import make_deal, make_restaurant


def test_average_falls_back_to_count_for_new_deals():
    assert daily_average(5, 0) == 5


def test_average_divides_by_days_active():
    assert daily_average(10, 5) == 2


def test_average_of_zero_metric_is_zero():
    assert daily_average(0, 4) == 0


def test_day_diff_counts_midnights_crossed():
    assert day_diff(datetime(2024, 1, 1, 23, 0), datetime(2024, 1, 2, 1, 0)) == 1
    assert day_diff(datetime(2024, 1, 1, 1, 0), datetime(2024, 1, 1, 23, 0)) == 0
    assert day_diff(datetime(2024, 1, 5), datetime(2024, 1, 2)) == -3


def test_active_summary_fields(restaurant, now):
    viewer = ObjectId()
    deal = make_deal(
        restaurant, now - timedelta(days=3), now + timedelta(days=4),
        views={"count": 3, "users": [viewer, viewer, ObjectId()]},
        saves={"count": 1, "users": [viewer]},
    )
    summary = derive_active_summary(deal, now)
    assert summary["id"] == str(deal["_id"])
    assert summary["unique_views"] == 2
    assert summary["days_left"] == 4
    assert summary["days_active"] == 3
    assert summary["views"] == {"count": 3}
    assert summary["saves"] == {"count": 1}
    for hidden in ("_id", "locations", "restaurant", "cuisines", "dietary_requirements", "created_at", "description"):
        assert hidden not in summary
    assert summary["name"] == "Two for one"
    assert summary["is_expired"] is False


def test_expired_summary_measures_full_run(restaurant, now):
    deal = make_deal(restaurant, now - timedelta(days=10), now - timedelta(days=4), is_expired=True)
    summary = derive_expired_summary(deal)
    assert summary["days_active"] == 6
    assert summary["unique_views"] == 0
    assert "days_left" not in summary


def test_detail_averages(restaurant, now):
    users = [ObjectId() for _ in range(5)]
    deal = make_deal(
        restaurant, now - timedelta(days=5), now + timedelta(days=2),
        views={"count": 10, "users": users},
        saves={"count": 15, "users": users[:2]},
    )
    detail = derive_detail(deal, now)
    assert detail["days_active"] == 5
    assert detail["views"] == {"count": 10, "avg": 2}
    assert detail["saves"] == {"count": 15, "avg": 3}
    assert detail["unique_views"] == {"count": 5, "avg": 1}
    assert detail["description"] == "Two pizzas for the price of one"
    assert "locations" in detail
    for hidden in ("restaurant", "cuisines", "dietary_requirements", "created_at"):
        assert hidden not in detail


def test_detail_for_brand_new_deal_reports_raw_counts(restaurant, now):
    deal = make_deal(restaurant, now, now + timedelta(days=2), views={"count": 5, "users": [ObjectId()]})
    detail = derive_detail(deal, now)
    assert detail["days_active"] == 0
    assert detail["views"]["avg"] == 5
    assert detail["unique_views"]["avg"] == 1
    assert detail["saves"]["avg"] == 0


async def test_active_and_expired_lists_partition_deals(mock_db, owner_ctx, restaurant, now):
    running = make_deal(restaurant, now - timedelta(days=2), now + timedelta(days=2), updated_at=now - timedelta(hours=5))
    newer = make_deal(restaurant, now - timedelta(days=1), now + timedelta(days=6), updated_at=now - timedelta(hours=1))
    ended = make_deal(restaurant, now - timedelta(days=9), now - timedelta(days=1))
    flagged = make_deal(restaurant, now - timedelta(days=9), now - timedelta(days=2), is_expired=True)
    foreign = make_deal(make_restaurant(), now - timedelta(days=2), now + timedelta(days=2))
    await mock_db["deals"].insert_many([running, newer, ended, flagged, foreign])

    active = await list_active_deals(owner_ctx, now)
    # a lapsed deal the sweeper has not reached yet is still is_expired=False
    assert [d["id"] for d in active] == [str(newer["_id"]), str(running["_id"]), str(ended["_id"])]

    expired = await list_expired_deals(owner_ctx, now)
    assert {d["id"] for d in expired} == {str(ended["_id"]), str(flagged["_id"])}


async def test_current_date_override_changes_the_view(mock_db, owner_ctx, restaurant, now):
    deal = make_deal(restaurant, now - timedelta(days=2), now + timedelta(days=2), is_expired=True)
    await mock_db["deals"].insert_one(deal)
    earlier = await list_active_deals(owner_ctx, now)
    later = await list_active_deals(owner_ctx, now + timedelta(days=3))
    assert len(earlier) == 1
    assert earlier[0]["days_left"] == 2
    assert later == []


async def test_deal_detail_lookup(mock_db, owner_ctx, restaurant, now):
    deal = make_deal(restaurant, now - timedelta(days=2), now + timedelta(days=2), views={"count": 4, "users": []})
    await mock_db["deals"].insert_one(deal)
    detail = await get_deal_detail(owner_ctx, str(deal["_id"]), now)
    assert detail["views"]["avg"] == 2


async def test_deal_detail_of_other_restaurant_is_not_found(mock_db, owner_ctx, now):
    deal = make_deal(make_restaurant(), now - timedelta(days=2), now + timedelta(days=2))
    await mock_db["deals"].insert_one(deal)
    with pytest.raises(NotFoundError) as exc:
        await get_deal_detail(owner_ctx, str(deal["_id"]), now)
    assert exc.value.status_code == 402
