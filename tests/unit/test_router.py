from conftest import OWNER, StubVenue
from dex_aggregator.core import NO_ROUTE, ProtocolVariant, RouteQuote
from dex_aggregator.router import RouteSelector, select_best


def _q(venue_id: str, amount_out: int) -> RouteQuote:
    return RouteQuote(venue_id=venue_id, amount_out=amount_out, estimated_gas=0, fee_bps=0, display_name=venue_id)


def test_strictly_greatest_output_wins():
    best = select_best([_q("A", 1800), _q("B", 1850)])
    print("[select-best] A=1800, B=1850 ->", best.venue_id)
    assert best.venue_id == "B"
    assert best.amount_out == 1850


def test_tie_keeps_first_encountered():
    assert select_best([_q("A", 1850), _q("B", 1850), _q("C", 1000)]).venue_id == "A"
    assert select_best([_q("C", 1000), _q("B", 1850), _q("A", 1850)]).venue_id == "B"


def test_empty_quote_set_is_no_route():
    best = select_best([])
    assert best is NO_ROUTE
    assert not best.is_route
    assert best.amount_out == 0


def test_zero_placeholder_never_beats_a_positive_quote():
    assert select_best([_q("cl", 0), _q("cp", 1)]).venue_id == "cp"
    assert select_best([_q("cl", 0)]).venue_id == "cl"


def test_find_best_route_over_registry(registry, aggregator):
    registry.register_venue(OWNER, "A", "A", 30, ProtocolVariant.CONSTANT_PRODUCT, StubVenue("A", 1800))
    registry.register_venue(OWNER, "B", "B", 30, ProtocolVariant.CONSTANT_PRODUCT, StubVenue("B", 1850))
    registry.register_venue(OWNER, "C", "C", 30, ProtocolVariant.CONSTANT_PRODUCT, StubVenue("C", 1850))
    selector = RouteSelector(aggregator)
    assert selector.find_best_route("TKA", "TKB", 1_000).venue_id == "B"

    registry.set_venue_active(OWNER, "B", False)
    assert selector.find_best_route("TKA", "TKB", 1_000).venue_id == "C"


def test_find_best_route_without_venues_is_no_route(aggregator):
    best = RouteSelector(aggregator).find_best_route("TKA", "TKB", 1_000)
    assert best.venue_id is None
    assert best.amount_out == 0


def test_deeper_pool_wins_on_real_curves(aggregator, route_env):
    best = RouteSelector(aggregator).find_best_route("TKA", "TKB", 50_000)
    quotes = {q.venue_id: q.amount_out for q in aggregator.get_all_quotes("TKA", "TKB", 50_000)}
    print("[real-curves] quotes ->", quotes)
    assert best.amount_out == max(quotes.values())
    assert quotes["dex-b"] > quotes["dex-a"]
