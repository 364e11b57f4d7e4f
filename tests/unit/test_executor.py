import threading
import time

import pytest

from conftest import ALICE, NOW, OWNER
from dex_aggregator.amm import get_amount_out
from dex_aggregator.core import (
    DeadlineExpired,
    ErrorKind,
    InvalidInput,
    ReentrantCall,
    SlippageExceeded,
    SwapRequest,
    TransferFailed,
    Unauthorized,
    UnsupportedSource,
    VenueExecutionError,
)
from dex_aggregator.events import SWAP_EXECUTED


def _req(venue_id="dex-b", amount_in=10_000, min_out=0, deadline=NOW + 60, fee_tier=None,
         token_in="TKA", token_out="TKB") -> SwapRequest:
    return SwapRequest(token_in, token_out, amount_in, min_out, venue_id, deadline, fee_tier)


def _snapshot(ledger, route_env):
    """Balances that a failed swap must leave untouched."""
    pair = route_env["dex-b"].pair_address("TKA", "TKB")
    return (
        ledger.balance_of("TKA", ALICE),
        ledger.balance_of("TKB", ALICE),
        ledger.balance_of("TKA", OWNER),
        ledger.balance_of("TKA", "agg"),
        ledger.balance_of("TKB", "agg"),
        ledger.balance_of("TKA", pair),
        ledger.balance_of("TKB", pair),
        ledger.allowance("TKA", ALICE, "agg"),
        ledger.allowance("TKA", "agg", "dex-b"),
        route_env["cl"].sqrt_price_x96,
    )


# -----------------------------
# Happy paths
# -----------------------------

def test_constant_product_swap_settles_measured_output(executor, ledger, route_env, funded_alice, events):
    expected_out = get_amount_out(9_970, 10_000_000, 10_000_000, 30)
    rec = executor.execute_swap(ALICE, _req(min_out=expected_out))
    print(f"[swap-cp] in=10000 fee={rec.fee_amount} out={rec.amount_out} (expected {expected_out})")

    assert rec.fee_amount == 30
    assert rec.amount_out == expected_out
    assert rec.venue_id == "dex-b"
    assert ledger.balance_of("TKA", ALICE) == 90_000
    assert ledger.balance_of("TKB", ALICE) == expected_out
    assert ledger.balance_of("TKA", OWNER) == 30
    assert ledger.balance_of("TKA", "agg") == 0
    assert ledger.balance_of("TKB", "agg") == 0
    assert ledger.allowance("TKA", "agg", "dex-b") == 0

    (ev,) = events.of_kind(SWAP_EXECUTED)
    assert ev.payload["caller"] == ALICE
    assert ev.payload["amount_out"] == expected_out
    assert ev.payload["fee_amount"] == 30


def test_concentrated_swap_uses_fee_tier_and_moves_price(executor, ledger, route_env, funded_alice):
    cl = route_env["cl"]
    before = cl.sqrt_price_x96
    rec = executor.execute_swap(ALICE, _req(venue_id="cl", fee_tier=3000))
    assert 0 < rec.amount_out < 9_970
    assert ledger.balance_of("TKB", ALICE) == rec.amount_out
    assert cl.sqrt_price_x96 < before


def test_zero_platform_fee_skips_fee_transfer(executor, ledger, route_env, funded_alice):
    executor.update_platform_fee(OWNER, 0)
    rec = executor.execute_swap(ALICE, _req())
    assert rec.fee_amount == 0
    assert rec.amount_out == get_amount_out(10_000, 10_000_000, 10_000_000, 30)
    assert ledger.balance_of("TKA", OWNER) == 0


# -----------------------------
# Validation failures (no effects)
# -----------------------------

@pytest.mark.parametrize(
    "overrides,exc,kind",
    [
        ({"amount_in": 0}, InvalidInput, ErrorKind.INVALID_INPUT),
        ({"deadline": NOW - 1}, DeadlineExpired, ErrorKind.DEADLINE_EXPIRED),
        ({"venue_id": "ghost"}, UnsupportedSource, ErrorKind.UNSUPPORTED_SOURCE),
        ({"token_out": "TKA"}, InvalidInput, ErrorKind.INVALID_INPUT),
        ({"min_out": -1}, InvalidInput, ErrorKind.INVALID_INPUT),
        ({"venue_id": "cl", "fee_tier": 1_000_000}, InvalidInput, ErrorKind.INVALID_INPUT),
    ],
)
def test_invalid_requests_fail_without_effects(executor, ledger, route_env, funded_alice, events,
                                               overrides, exc, kind):
    before = _snapshot(ledger, route_env)
    with pytest.raises(exc) as ei:
        executor.execute_swap(ALICE, _req(**overrides))
    print(f"[swap-invalid] {overrides} -> {ei.value.kind}")
    assert ei.value.kind is kind
    assert _snapshot(ledger, route_env) == before
    assert events.of_kind(SWAP_EXECUTED) == []


def test_deadline_equal_to_now_is_accepted(executor, route_env, funded_alice):
    assert executor.execute_swap(ALICE, _req(deadline=NOW)).amount_out > 0


def test_inactive_venue_is_unsupported(executor, registry, route_env, funded_alice):
    registry.set_venue_active(OWNER, "dex-b", False)
    with pytest.raises(UnsupportedSource):
        executor.execute_swap(ALICE, _req())


def test_missing_allowance_is_transfer_failed(executor, ledger, route_env):
    ledger.mint("TKA", "bob", 50_000)
    with pytest.raises(TransferFailed) as ei:
        executor.execute_swap("bob", _req())
    assert ei.value.kind is ErrorKind.TRANSFER_FAILED
    assert ledger.balance_of("TKA", "bob") == 50_000


# -----------------------------
# Atomic rollback after custody
# -----------------------------

def test_slippage_after_execution_rolls_back_everything(executor, ledger, route_env, funded_alice, events):
    # 1% burned on every TKB transfer: the venue pays the quoted amount but
    # custody measures less, so the post-execution check fails.
    ledger.set_transfer_fee("TKB", 100)
    quoted = get_amount_out(9_970, 10_000_000, 10_000_000, 30)
    before = _snapshot(ledger, route_env)

    with pytest.raises(SlippageExceeded) as ei:
        executor.execute_swap(ALICE, _req(min_out=quoted))
    print(f"[swap-slippage] min={ei.value.min_amount_out} measured={ei.value.amount_out}")
    assert ei.value.kind is ErrorKind.SLIPPAGE_EXCEEDED
    assert ei.value.min_amount_out == quoted
    assert ei.value.amount_out == quoted - quoted * 100 // 10_000
    assert _snapshot(ledger, route_env) == before
    assert events.of_kind(SWAP_EXECUTED) == []


def test_short_output_on_plain_tokens_is_slippage(executor, ledger, route_env, funded_alice, events):
    quoted = get_amount_out(9_970, 10_000_000, 10_000_000, 30)
    before = _snapshot(ledger, route_env)

    with pytest.raises(SlippageExceeded) as ei:
        executor.execute_swap(ALICE, _req(min_out=quoted + 1))
    assert ei.value.kind is ErrorKind.SLIPPAGE_EXCEEDED
    assert (ei.value.min_amount_out, ei.value.amount_out) == (quoted + 1, quoted)
    assert _snapshot(ledger, route_env) == before
    assert events.of_kind(SWAP_EXECUTED) == []


def test_short_output_on_concentrated_venue_is_slippage(executor, ledger, route_env, funded_alice):
    before = _snapshot(ledger, route_env)
    with pytest.raises(SlippageExceeded) as ei:
        executor.execute_swap(ALICE, _req(venue_id="cl", fee_tier=3000, min_out=9_971))
    assert 0 < ei.value.amount_out < 9_971
    assert _snapshot(ledger, route_env) == before


def test_failed_swap_keeps_concurrent_transfer_and_hides_partial_state(executor, ledger, route_env, funded_alice):
    ledger.mint("USDC", "bob", 1_000)
    quoted = get_amount_out(9_970, 10_000_000, 10_000_000, 30)
    before = _snapshot(ledger, route_env)
    in_custody, bob_started = threading.Event(), threading.Event()
    seen = {}

    def hold_in_custody(token, sender, recipient, amount):
        if token == "TKA" and recipient == "agg" and not in_custody.is_set():
            in_custody.set()
            bob_started.wait(2)
            time.sleep(0.05)

    def bob_pays_carol():
        in_custody.wait(2)
        bob_started.set()
        seen["alice_tka"] = ledger.balance_of("TKA", ALICE)
        ledger.transfer("USDC", "bob", "carol", 400)

    ledger.add_transfer_hook(hold_in_custody)
    bob = threading.Thread(target=bob_pays_carol)
    bob.start()
    with pytest.raises(SlippageExceeded):
        executor.execute_swap(ALICE, _req(min_out=quoted + 1))
    bob.join(2)
    print(f"[swap-concurrent] seen={seen} carol={ledger.balance_of('USDC', 'carol')}")

    assert not bob.is_alive()
    assert seen["alice_tka"] == 100_000
    assert ledger.balance_of("USDC", "carol") == 400
    assert ledger.balance_of("USDC", "bob") == 600
    assert _snapshot(ledger, route_env) == before


def test_venue_failure_is_wrapped_and_rolled_back(executor, ledger, route_env, funded_alice):
    before = _snapshot(ledger, route_env)
    with pytest.raises(VenueExecutionError) as ei:
        executor.execute_swap(ALICE, _req(venue_id="cl", fee_tier=500))
    assert ei.value.kind is ErrorKind.VENUE_EXECUTION_FAILED
    assert ei.value.venue_id == "cl"
    assert ei.value.__cause__ is not None
    assert _snapshot(ledger, route_env) == before


def test_fee_on_transfer_input_is_rejected(executor, ledger, route_env, funded_alice):
    ledger.set_transfer_fee("TKA", 50)
    before = _snapshot(ledger, route_env)
    with pytest.raises(TransferFailed):
        executor.execute_swap(ALICE, _req())
    assert _snapshot(ledger, route_env) == before


def test_nested_swap_from_token_hook_is_reentrant(executor, ledger, route_env, funded_alice):
    fired = []

    def hook(token, sender, recipient, amount):
        if recipient == "agg" and not fired:
            fired.append(token)
            executor.execute_swap(ALICE, _req(amount_in=1_000))

    ledger.add_transfer_hook(hook)
    before = _snapshot(ledger, route_env)
    with pytest.raises(ReentrantCall) as ei:
        executor.execute_swap(ALICE, _req())
    assert ei.value.kind is ErrorKind.REENTRANT_CALL
    assert fired == ["TKA"]
    assert _snapshot(ledger, route_env) == before

    # lock released: a plain swap goes through afterwards
    ledger.remove_transfer_hook(hook)
    assert executor.execute_swap(ALICE, _req()).amount_out > 0


# -----------------------------
# Admin
# -----------------------------

@pytest.mark.parametrize("fee", [0, 1, 30, 500, 999, 1000])
def test_platform_fee_round_trips_within_cap(executor, fee):
    executor.update_platform_fee(OWNER, fee)
    assert executor.platform_fee_bps == fee


def test_platform_fee_above_cap_or_non_owner_fails(executor):
    with pytest.raises(InvalidInput):
        executor.update_platform_fee(OWNER, 1001)
    with pytest.raises(Unauthorized):
        executor.update_platform_fee("mallory", 10)
    assert executor.platform_fee_bps == 30


def test_fee_recipient_update(executor, ledger, route_env, funded_alice):
    assert executor.fee_recipient == OWNER
    with pytest.raises(InvalidInput):
        executor.update_fee_recipient(OWNER, "")
    executor.update_fee_recipient(OWNER, "treasury")
    executor.execute_swap(ALICE, _req())
    assert ledger.balance_of("TKA", "treasury") == 30
    assert ledger.balance_of("TKA", OWNER) == 0


def test_emergency_withdraw_moves_stray_balance_to_owner(executor, ledger):
    ledger.mint("TKB", "agg", 500)
    with pytest.raises(Unauthorized):
        executor.emergency_withdraw("mallory", "TKB", 100)
    executor.emergency_withdraw(OWNER, "TKB", 200)
    assert ledger.balance_of("TKB", OWNER) == 200
    assert ledger.balance_of("TKB", "agg") == 300
    with pytest.raises(TransferFailed):
        executor.emergency_withdraw(OWNER, "TKB", 301)
    with pytest.raises(InvalidInput):
        executor.emergency_withdraw(OWNER, "TKB", 0)


def test_volume_listener_receives_records_and_cannot_fail_the_swap(executor, route_env, funded_alice):
    seen = []
    executor.volume_listener = seen.append
    rec = executor.execute_swap(ALICE, _req())
    assert seen == [rec]

    def broken(_):
        raise RuntimeError("listener down")

    executor.volume_listener = broken
    assert executor.execute_swap(ALICE, _req()).amount_out > 0
