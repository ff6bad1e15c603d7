import logging

import pytest
from sqlalchemy import inspect

from adapters.persistence.orm.search_repository import EntitySearchRepository
from app.models import Order
from app.models.order import OrderStatus
from app.schemas.order_schemas import ORDER_FILTERS, OrderSearch
from domain.errors import IllegalFetchCombinationError, InvalidCriteriaError
from domain.models.query import FetchPlan, FetchStrategy, Page

SHIPPED = {"status": "SHIPPED"}


def repo_for(session, **kwargs):
    return EntitySearchRepository(session, Order, ORDER_FILTERS, criteria_model=OrderSearch, **kwargs)


def unloaded(instance):
    return inspect(instance).unloaded


def snapshot(orders):
    """Plain values for comparing results loaded in different sessions."""
    return [
        (
            o.id,
            o.status,
            o.member.id,
            o.member.name,
            o.delivery.id if o.delivery else None,
            o.delivery.city if o.delivery else None,
        )
        for o in orders
    ]


@pytest.mark.asyncio
async def test_no_fetch_plan_leaves_associations_unloaded(db_session, query_counter):
    result = await repo_for(db_session).search(None)

    assert result.strategy == FetchStrategy.NONE
    assert [o.id for o in result] == [1, 2, 3, 4, 5]
    assert result.round_trips == 1
    assert query_counter.count == 1
    for order in result:
        assert {"member", "delivery", "order_items", "payments"} <= unloaded(order)


@pytest.mark.asyncio
async def test_to_one_join_loads_in_one_round_trip(db_session, query_counter):
    result = await repo_for(db_session).search(SHIPPED, FetchPlan.of("member", "delivery"))

    assert result.strategy == FetchStrategy.JOIN
    assert result.round_trips == 1
    assert query_counter.count == 1
    assert [(o.id, o.member.name, o.delivery.city) for o in result] == [
        (1, "kim", "Seoul"),
        (3, "lee", "Busan"),
    ]


@pytest.mark.asyncio
async def test_to_one_join_keeps_orders_without_delivery(db_session):
    result = await repo_for(db_session).search(
        {"member_name": "lee"}, FetchPlan.of("member", "delivery")
    )

    assert [o.id for o in result] == [3, 4]
    assert result.items[1].delivery is None
    assert "delivery" not in unloaded(result.items[1])


@pytest.mark.asyncio
async def test_lazy_baseline_matches_join_with_more_round_trips(session_factory, shop, query_counter):
    async with session_factory() as session:
        joined = await repo_for(session).search(SHIPPED, FetchPlan.of("member", "delivery"))
        joined_values = snapshot(joined)

    query_counter.reset()
    async with session_factory() as session:
        lazy = await repo_for(session).search(
            SHIPPED, FetchPlan.of("member", "delivery", strategy=FetchStrategy.LAZY)
        )
        lazy_values = snapshot(lazy)

    assert lazy.strategy == FetchStrategy.LAZY
    assert lazy_values == joined_values
    assert joined.round_trips == 1
    # 1 root query + (member + delivery) for each of the 2 rows
    assert lazy.round_trips == 5
    assert query_counter.count == 5


@pytest.mark.asyncio
async def test_lazy_baseline_reuses_identity_map_for_repeated_members(db_session):
    result = await repo_for(db_session).search(
        None, FetchPlan.of("member", strategy=FetchStrategy.LAZY)
    )

    # 1 root query + one load per distinct member (kim, lee, park)
    assert result.round_trips == 4
    assert result.items[0].member is result.items[1].member


@pytest.mark.asyncio
async def test_join_fold_returns_one_result_per_root(db_session, query_counter):
    plan = FetchPlan.of("member", "delivery", "order_items", "order_items.item")
    result = await repo_for(db_session).search(SHIPPED, plan)

    assert result.strategy == FetchStrategy.JOIN_FOLD
    assert result.round_trips == 1
    assert query_counter.count == 1
    assert [o.id for o in result] == [1, 3]

    first, second = result.items
    assert [(oi.item.name, oi.count) for oi in first.order_items] == [("JPA1 BOOK", 1), ("JPA2 BOOK", 2)]
    assert [(oi.item.name, oi.count) for oi in second.order_items] == [("JPA1 BOOK", 3), ("SPRING2 BOOK", 1)]
    # Both orders bought JPA1: same identity, same instance
    assert first.order_items[0].item is second.order_items[0].item
    assert first.member.name == "kim"
    assert second.delivery.city == "Busan"


@pytest.mark.asyncio
async def test_join_fold_keeps_roots_without_members(db_session):
    result = await repo_for(db_session).search({"member_name": "lee"}, FetchPlan.of("order_items"))

    assert [o.id for o in result] == [3, 4]
    assert len(result.items[0].order_items) == 2
    assert result.items[1].order_items == []


@pytest.mark.asyncio
async def test_join_fold_paginates_in_memory_when_acknowledged(db_session, query_counter, caplog):
    page = Page(offset=1, limit=2, in_memory=True)
    with caplog.at_level(logging.WARNING):
        result = await repo_for(db_session).search(None, FetchPlan.of("order_items"), page)

    assert result.strategy == FetchStrategy.JOIN_FOLD
    assert [o.id for o in result] == [2, 3]
    assert [len(o.order_items) for o in result] == [1, 2]
    assert query_counter.count == 1
    assert "applying in memory" in caplog.text
    # The storage query itself carried no LIMIT
    assert "LIMIT" not in query_counter.statements[0]


@pytest.mark.asyncio
async def test_join_fold_caps_roots_not_rows(db_session):
    repo = repo_for(db_session, default_cap=2)
    result = await repo.search(None, FetchPlan.of("order_items"))

    assert [o.id for o in result] == [1, 2]
    assert len(result.items[0].order_items) == 2


@pytest.mark.asyncio
async def test_exact_page_with_collection_switches_to_batch(db_session, query_counter):
    page = Page(offset=1, limit=2)
    result = await repo_for(db_session).search(None, FetchPlan.of("member", "order_items"), page)

    assert result.strategy == FetchStrategy.BATCH
    assert [o.id for o in result] == [2, 3]
    assert [[oi.count for oi in o.order_items] for o in result] == [[1], [3, 1]]
    assert [o.member.name for o in result] == ["kim", "lee"]
    assert result.round_trips == 2
    assert "LIMIT" in query_counter.statements[0]


@pytest.mark.asyncio
async def test_batch_loads_each_collection_once(db_session, query_counter):
    plan = FetchPlan.of("member", "delivery", "order_items", "order_items.item", "payments")
    result = await repo_for(db_session).search(None, plan)

    assert result.strategy == FetchStrategy.BATCH
    # root query + order_items (with item joined) + payments
    assert result.round_trips == 3
    assert query_counter.count == 3

    by_id = {o.id: o for o in result}
    assert [p.amount for p in by_id[1].payments] == [30000, 20000]
    assert by_id[4].payments == []
    assert by_id[4].order_items == []
    assert [oi.item.name for oi in by_id[5].order_items] == ["SPRING2 BOOK"]


@pytest.mark.asyncio
async def test_batch_with_no_roots_skips_secondary_queries(db_session):
    result = await repo_for(db_session).search(
        {"member_name": "nobody"}, FetchPlan.of("order_items", "payments")
    )

    assert result.items == []
    assert result.round_trips == 1


@pytest.mark.asyncio
async def test_two_collections_in_one_join_fail_before_querying(db_session, query_counter):
    plan = FetchPlan.of("order_items", "payments", strategy=FetchStrategy.JOIN_FOLD)

    with pytest.raises(IllegalFetchCombinationError):
        await repo_for(db_session).search(SHIPPED, plan)
    assert query_counter.count == 0


@pytest.mark.asyncio
async def test_strategy_given_by_name_runs_like_the_enum(db_session, query_counter):
    result = await repo_for(db_session).search(SHIPPED, FetchPlan.of("member", strategy="JOIN"))

    assert result.strategy is FetchStrategy.JOIN
    assert query_counter.count == 1
    assert [o.member.name for o in result] == ["kim", "lee"]


@pytest.mark.asyncio
async def test_unacknowledged_pagination_with_join_fold_fails(db_session, query_counter):
    plan = FetchPlan.of("order_items", strategy=FetchStrategy.JOIN_FOLD)

    with pytest.raises(IllegalFetchCombinationError):
        await repo_for(db_session).search(None, plan, Page(limit=10))
    assert query_counter.count == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "paths",
    [
        ("coupons",),
        ("member.orders",),
        ("order_items.item.name",),
        ("order_items.order_id",),
    ],
)
async def test_unsupported_paths_are_rejected(db_session, query_counter, paths):
    with pytest.raises(IllegalFetchCombinationError):
        await repo_for(db_session).search(None, FetchPlan.of(*paths))
    assert query_counter.count == 0


@pytest.mark.asyncio
async def test_invalid_criteria_fail_before_querying(db_session, query_counter):
    with pytest.raises(InvalidCriteriaError):
        await repo_for(db_session).search({"status": "SHIPPED", "zipcode": "1111"})
    assert query_counter.count == 0


@pytest.mark.asyncio
async def test_empty_criteria_behave_like_no_filter(db_session):
    repo = repo_for(db_session)
    expected = [o.id for o in await repo.search(None)]

    for criteria in ({}, OrderSearch(), OrderSearch(member_name=""), {"member_name": None}):
        assert [o.id for o in await repo.search(criteria)] == expected


@pytest.mark.asyncio
async def test_default_cap_limits_unfiltered_search(db_session):
    result = await repo_for(db_session, default_cap=3).search(None)

    assert result.limit == 3
    assert [o.id for o in result] == [1, 2, 3]


@pytest.mark.asyncio
async def test_member_name_match_is_case_sensitive_substring(db_session):
    repo = repo_for(db_session)

    assert [o.id for o in await repo.search({"member_name": "im"})] == [1, 2]
    assert [o.id for o in await repo.search({"member_name": "KIM"})] == []
    assert [o.id for o in await repo.search({"member_name": "%"})] == []
    assert [o.id for o in await repo.search({"member_name": "_ee"})] == []


@pytest.mark.asyncio
async def test_status_and_name_are_combined_with_and(db_session):
    result = await repo_for(db_session).search(
        OrderSearch(status=OrderStatus.ORDER, member_name="kim")
    )
    assert [o.id for o in result] == [2]
