"""Route selection: pick the single best venue from a quote set.

Best means strictly greatest `amount_out`. Ties keep the first-encountered
quote, so among equal outputs the venue registered earliest wins. An empty
quote set yields the `NO_ROUTE` sentinel instead of an error; callers check
`quote.is_route`.
"""
from __future__ import annotations

import logging
from typing import Iterable, List

from .core.datatypes import NO_ROUTE, RouteQuote
from .quotes import QuoteAggregator

logger = logging.getLogger(__name__)


def select_best(quotes: Iterable[RouteQuote]) -> RouteQuote:
    """Single linear scan; first-encountered wins on equal output.

    A zero-amount placeholder can only win when it is the sole candidate
    (or every candidate is zero), since any positive quote beats it.
    """
    best = None
    for q in quotes:
        if best is None or q.amount_out > best.amount_out:
            best = q
    return NO_ROUTE if best is None else best


class RouteSelector:
    def __init__(self, aggregator: QuoteAggregator) -> None:
        self.aggregator = aggregator

    def find_best_route(self, token_in: str, token_out: str, amount_in: int) -> RouteQuote:
        quotes: List[RouteQuote] = self.aggregator.get_all_quotes(token_in, token_out, amount_in)
        best = select_best(quotes)
        if best.is_route:
            logger.debug("best route %s -> %s via %s amount_out=%d (of %d quotes)",
                         token_in, token_out, best.venue_id, best.amount_out, len(quotes))
        else:
            logger.debug("no route %s -> %s", token_in, token_out)
        return best


__all__ = ["select_best", "RouteSelector"]
