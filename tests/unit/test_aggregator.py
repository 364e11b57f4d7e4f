import pytest

from conftest import NOW, FixedClock
from dex_aggregator import DexAggregator, EngineConfig, ProtocolVariant, SwapRequest, Unauthorized
from dex_aggregator.core import EVENT_LOG_MAXLEN, WAD
from dex_aggregator.events import POOL_UPDATED, SWAP_EXECUTED, TOKEN_PRICE_UPDATED, VENUE_REGISTERED
from dex_aggregator.ledger import InMemoryLedger
from dex_aggregator.venues import ConstantProductPoolVenue


@pytest.fixture()
def dex():
    ledger = InMemoryLedger()
    clock = FixedClock()
    with DexAggregator("admin", ledger, address="router", config=EngineConfig(platform_fee_bps=10),
                       clock=clock) as d:
        for vid, depth in (("small", 1_000_000), ("large", 50_000_000)):
            venue = ConstantProductPoolVenue(vid, ledger, fee_bps=30, clock=clock)
            pair = venue.create_pair("TKA", "TKB")
            ledger.mint("TKA", pair, depth)
            ledger.mint("TKB", pair, 2 * depth)
            d.register_venue("admin", vid, vid.title(), 30, ProtocolVariant.CONSTANT_PRODUCT, venue)
        yield d


def test_quote_route_execute_and_track_volume(dex):
    best = dex.find_best_route("TKA", "TKB", 20_000)
    assert best.venue_id == "large"
    assert [q.venue_id for q in dex.get_all_quotes("TKA", "TKB", 20_000)] == ["small", "large"]
    assert dex.get_quote_from_dex("small", "TKA", "TKB", 20_000).amount_out < best.amount_out

    dex.ledger.mint("TKA", "trader", 20_000)
    dex.ledger.increase_allowance("TKA", "trader", dex.address, 20_000)
    rec = dex.execute_swap("trader", SwapRequest("TKA", "TKB", 20_000, 1, best.venue_id, NOW + 30))
    assert rec.fee_amount == 20
    assert dex.ledger.balance_of("TKB", "trader") == rec.amount_out
    assert dex.analytics.get_executed_volume("TKA") == 20_000
    assert dex.analytics.get_executed_volume("TKB") == rec.amount_out

    kinds = [e.kind for e in dex.events]
    assert kinds.count(VENUE_REGISTERED) == 2
    assert kinds.count(SWAP_EXECUTED) == 1


def test_analytics_operations_through_facade(dex):
    dex.set_authorized_updater("admin", "oracle", True)
    dex.update_token_price("oracle", "TKA", 2)
    dex.update_pool_data("oracle", "pool-1", "TKA", "TKB", "large", "Large", 500, 40, 1, 300)
    dex.update_pool_data("oracle", "pool-2", "TKB", "TKA", "small", "Small", 100, 5, 0, 100)

    assert [p.pool_id for p in dex.get_pools_for_pair("TKA", "TKB")] == ["pool-1", "pool-2"]
    assert [p.pool_id for p in dex.get_top_pools_by_liquidity(1)] == ["pool-1"]
    rec, pools = dex.get_token_analytics("TKA")
    assert (rec.total_liquidity_usd, rec.price_usd, len(pools)) == (600, 2, 2)
    assert dex.get_volume_history("pool-1", 24)[0].price == 2
    assert dex.get_totals().total_liquidity_usd == 600
    assert len(dex.events.of_kind(POOL_UPDATED)) == 2

    with pytest.raises(Unauthorized):
        dex.deactivate_pool("oracle", "pool-1")
    dex.deactivate_pool("admin", "pool-1")
    assert dex.get_totals().active_pools == 1


def test_admin_operations_through_facade(dex):
    dex.update_platform_fee("admin", 0)
    dex.update_fee_recipient("admin", "treasury")
    assert dex.executor.platform_fee_bps == 0
    assert dex.executor.fee_recipient == "treasury"
    dex.set_venue_active("admin", "large", False)
    assert dex.find_best_route("TKA", "TKB", 1_000).venue_id == "small"

    dex.ledger.mint("TKB", dex.address, 9)
    dex.emergency_withdraw("admin", "TKB", 9)
    assert dex.ledger.balance_of("TKB", "admin") == 9


def test_calculate_il_is_exposed(dex):
    assert dex.calculate_il(WAD, WAD, 4 * WAD, WAD, 1, 4) == 2000


def test_shared_event_log_stays_at_its_cap():
    with DexAggregator("admin", InMemoryLedger()) as d:
        assert d.events.events.maxlen == EVENT_LOG_MAXLEN

    with DexAggregator("admin", InMemoryLedger(), config=EngineConfig(event_log_maxlen=3)) as d:
        d.set_authorized_updater("admin", "oracle", True)
        for price in range(1, 8):
            d.update_token_price("oracle", "TKA", price)
        assert len(d.events) == 3
        assert [e.payload["price_usd"] for e in d.events.of_kind(TOKEN_PRICE_UPDATED)] == [5, 6, 7]
