"""
Tests for the option ranking selector.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from fare_funnel.detection.strategies import url_matches
from fare_funnel.detection.targets import TargetState
from fare_funnel.exceptions import (
    Cancelled,
    ConfigurationError,
    NoSelectableOptionError,
    ScopeActivationError,
    StateNotReachedError,
)
from fare_funnel.selection.models import ScopeFilter, SelectionPolicy
from fare_funnel.selection.selector import OptionRankingSelector
from fare_funnel.utils.waiting import CancelToken


@pytest.fixture
def selector():
    """Selector without a resolver (no scope support)."""
    return OptionRankingSelector()


@pytest.fixture
def resolver(clock):
    """Mock resolver whose scope confirmation succeeds."""
    resolver = MagicMock()
    resolver.clock = clock
    resolver.cancel_token = None
    resolver.await_state = AsyncMock()
    return resolver


def _scope(control, label="Economy"):
    confirmation = TargetState.of(f"{label} fares", url_matches("any", r".", timeout_s=1))
    return ScopeFilter(label=label, control=control, confirmation=confirmation, budget_s=5)


class TestSelectCheapest:
    """Test select_cheapest() ranking and fallbacks."""

    @pytest.mark.asyncio
    async def test_cheapest_price_wins(self, selector, make_candidate):
        """Prices [120, 95, 300] select the 95 option and only that one."""
        candidates = [
            make_candidate("fare #1", "Standard $120"),
            make_candidate("fare #2", "Basic $95"),
            make_candidate("fare #3", "Flex $300"),
        ]

        outcome = await selector.select_cheapest(candidates)

        assert outcome.candidate is candidates[1]
        assert outcome.price == 95.0
        assert outcome.policy == SelectionPolicy.PRICE_RANKED
        assert outcome.index == 1
        assert outcome.priced_count == 3
        assert [c.activations for c in candidates] == [0, 1, 0]

    @pytest.mark.asyncio
    async def test_tie_keeps_original_order(self, selector, make_candidate):
        """Equal prices resolve to the earlier candidate."""
        candidates = [
            make_candidate("a", "CAD 100"),
            make_candidate("b", "CAD 100"),
        ]

        outcome = await selector.select_cheapest(candidates)

        assert outcome.candidate is candidates[0]

    @pytest.mark.asyncio
    async def test_unpriced_candidates_ignored(self, selector, make_candidate):
        """Only candidates with a parsable price take part in ranking."""
        candidates = [
            make_candidate("sold out", "Sold out"),
            make_candidate("priced", "$450"),
        ]

        outcome = await selector.select_cheapest(candidates)

        assert outcome.candidate is candidates[1]
        assert outcome.priced_count == 1
        assert outcome.candidate_count == 2

    @pytest.mark.asyncio
    async def test_unreadable_candidate_skipped(self, selector, make_candidate):
        """A candidate whose text cannot be read does not sink the selection."""
        candidates = [
            make_candidate("detached", text_error=RuntimeError("element detached")),
            make_candidate("ok", "USD 80"),
        ]

        outcome = await selector.select_cheapest(candidates)

        assert outcome.candidate is candidates[1]

    @pytest.mark.asyncio
    async def test_badge_fallback(self, selector, make_candidate):
        """Without prices, the first "Lowest" badge wins."""
        candidates = [
            make_candidate("standard", "Standard"),
            make_candidate("basic", "Basic - Lowest"),
            make_candidate("flex", "Flex - lowest change fee"),
        ]

        outcome = await selector.select_cheapest(candidates)

        assert outcome.candidate is candidates[1]
        assert outcome.policy == SelectionPolicy.BADGE_FALLBACK
        assert outcome.price is None
        assert candidates[1].activations == 1

    @pytest.mark.asyncio
    async def test_positional_fallback(self, selector, make_candidate):
        """Without prices or badges, the first candidate wins."""
        candidates = [
            make_candidate("first", "Select"),
            make_candidate("second", "Select"),
        ]

        outcome = await selector.select_cheapest(candidates)

        assert outcome.candidate is candidates[0]
        assert outcome.policy == SelectionPolicy.POSITIONAL_FALLBACK

    @pytest.mark.asyncio
    async def test_empty_set(self, selector):
        """An empty candidate set is an error."""
        with pytest.raises(NoSelectableOptionError) as exc_info:
            await selector.select_cheapest([])
        assert exc_info.value.candidate_count == 0

    @pytest.mark.asyncio
    async def test_sub_options_priced_individually(self, selector, make_candidate):
        """A card's cheapest fare tier represents it and is the one activated."""
        basic = make_candidate("card option #1", "Basic $300")
        standard = make_candidate("card option #2", "Standard $150")
        card = make_candidate("card", "AC 101 Toronto - Vancouver", options=[basic, standard])

        outcome = await selector.select_cheapest([card])

        assert outcome.candidate is card
        assert outcome.option is standard
        assert outcome.price == 150.0
        assert standard.activations == 1
        assert card.activations == 0
        assert basic.activations == 0

    @pytest.mark.asyncio
    async def test_candidate_source(self, selector, make_candidate):
        """Candidates may be supplied by an async callable."""
        candidates = [make_candidate("only", "$10")]

        async def source():
            return candidates

        outcome = await selector.select_cheapest(source)

        assert outcome.candidate is candidates[0]

    @pytest.mark.asyncio
    async def test_rank_has_no_side_effects(self, selector, make_candidate):
        """rank() orders without activating anything."""
        candidates = [
            make_candidate("a", "$30"),
            make_candidate("b", "none"),
            make_candidate("c", "$20"),
        ]

        ranked = await selector.rank(candidates)

        assert [p.candidate.label for p in ranked] == ["c", "a"]
        assert all(c.activations == 0 for c in candidates)

    def test_outcome_str(self, make_candidate):
        """The outcome renders the option, price and policy."""
        from fare_funnel.selection.models import SelectionOutcome

        candidate = make_candidate("fare #2")
        outcome = SelectionOutcome(
            candidate=candidate,
            option=candidate,
            policy=SelectionPolicy.PRICE_RANKED,
            index=1,
            candidate_count=3,
            priced_count=3,
            price=95.0,
            scope="Economy",
        )
        assert str(outcome) == "✓ fare #2 at 95.00 [Economy] (price_ranked, #2 of 3)"


class TestScope:
    """Test scope narrowing before ranking."""

    @pytest.mark.asyncio
    async def test_scope_activated_and_confirmed(self, resolver, make_candidate, make_scope_control):
        """The control is activated and the confirmation awaited before ranking."""
        control = make_scope_control()
        scope = _scope(control)
        candidates = [make_candidate("a", "$200", context="Economy")]

        outcome = await OptionRankingSelector(resolver).select_cheapest(candidates, scope=scope)

        assert control.activations == 1
        resolver.await_state.assert_awaited_once_with(scope.confirmation, 5, cancel=None)
        assert outcome.scope == "Economy"

    @pytest.mark.asyncio
    async def test_out_of_scope_candidates_dropped(self, resolver, make_candidate, make_scope_control):
        """Cheaper options from another scope are never selected."""
        candidates = [
            make_candidate("business", "$90", context="Business Class"),
            make_candidate("economy", "$120", context="economy"),
            make_candidate("untagged", "$150"),
        ]

        outcome = await OptionRankingSelector(resolver).select_cheapest(
            candidates, scope=_scope(make_scope_control()),
        )

        assert outcome.candidate is candidates[1]
        assert outcome.candidate_count == 2
        assert candidates[0].activations == 0

    @pytest.mark.asyncio
    async def test_nothing_in_scope(self, resolver, make_candidate, make_scope_control):
        """A scope with no candidates left is NoSelectableOptionError."""
        candidates = [make_candidate("business", "$90", context="Business Class")]

        with pytest.raises(NoSelectableOptionError) as exc_info:
            await OptionRankingSelector(resolver).select_cheapest(
                candidates, scope=_scope(make_scope_control()),
            )
        assert exc_info.value.scope == "Economy"

    @pytest.mark.asyncio
    async def test_unconfirmed_scope(self, resolver, make_candidate, make_scope_control):
        """A scope that never renders fails without ranking or activating."""
        resolver.await_state.side_effect = StateNotReachedError(
            "not reached", target="Economy fares", elapsed_s=5,
        )
        candidates = [make_candidate("a", "$10")]

        with pytest.raises(ScopeActivationError) as exc_info:
            await OptionRankingSelector(resolver).select_cheapest(
                candidates, scope=_scope(make_scope_control()),
            )

        assert exc_info.value.scope == "Economy"
        assert candidates[0].activations == 0

    @pytest.mark.asyncio
    async def test_control_failure(self, resolver, make_candidate, make_scope_control):
        """A scope control that cannot be clicked is a ScopeActivationError."""
        control = make_scope_control(error=RuntimeError("tab missing"))

        with pytest.raises(ScopeActivationError):
            await OptionRankingSelector(resolver).select_cheapest(
                [make_candidate("a", "$10")], scope=_scope(control),
            )

    @pytest.mark.asyncio
    async def test_cancelled_propagates(self, resolver, make_candidate, make_scope_control):
        """Cancellation during scope confirmation is not wrapped."""
        resolver.await_state.side_effect = Cancelled("aborted", operation="await_state")

        with pytest.raises(Cancelled):
            await OptionRankingSelector(resolver).select_cheapest(
                [make_candidate("a", "$10")], scope=_scope(make_scope_control()),
            )

    @pytest.mark.asyncio
    async def test_scope_needs_resolver(self, selector, make_candidate, make_scope_control):
        """Scoping without a resolver is a configuration error."""
        with pytest.raises(ConfigurationError):
            await selector.select_cheapest(
                [make_candidate("a", "$10")], scope=_scope(make_scope_control()),
            )

    @pytest.mark.asyncio
    async def test_source_sampled_after_scope(self, resolver, make_candidate, make_scope_control):
        """A candidate source is sampled only once the scope is active."""
        control = make_scope_control()
        seen = []

        async def source():
            seen.append(control.activations)
            return [make_candidate("a", "$10")]

        await OptionRankingSelector(resolver).select_cheapest(source, scope=_scope(control))

        assert seen == [1]


class TestCancellation:
    """Test that selection clicks race the cancel token."""

    @pytest.mark.asyncio
    async def test_fired_token_skips_activation(self, make_candidate):
        """An already fired token raises Cancelled and nothing is clicked."""
        token = CancelToken()
        token.cancel("run timeout")
        candidates = [make_candidate("fare #1", "$100")]

        with pytest.raises(Cancelled) as exc_info:
            await OptionRankingSelector(cancel=token).select_cheapest(candidates)

        assert exc_info.value.operation == "select_cheapest"
        assert candidates[0].activations == 0

    @pytest.mark.asyncio
    async def test_cancelled_during_slow_activation(self, make_candidate):
        """Firing the token while the winner's click hangs raises Cancelled."""
        class SlowCandidate(type(make_candidate("x"))):
            async def activate(self):
                await asyncio.sleep(0.2)
                await super().activate()

        token = CancelToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel, "run timeout")
        candidate = SlowCandidate("fare #1", "$100")

        with pytest.raises(Cancelled):
            await OptionRankingSelector(cancel=token).select_cheapest([candidate])

        assert candidate.activations == 0

    @pytest.mark.asyncio
    async def test_token_taken_from_resolver(self, resolver, make_candidate, make_scope_control):
        """The resolver's token also guards the scope control click."""
        token = CancelToken()
        token.cancel("interrupted")
        resolver.cancel_token = token
        control = make_scope_control()

        with pytest.raises(Cancelled):
            await OptionRankingSelector(resolver).select_cheapest(
                [make_candidate("a", "$10")], scope=_scope(control),
            )

        assert control.activations == 0
        resolver.await_state.assert_not_awaited()


class TestUnreadableText:
    """Test candidates whose text is missing."""

    @pytest.mark.asyncio
    async def test_none_text_is_unpriced(self, selector, make_candidate):
        """A candidate returning None text is skipped rather than failing."""
        class NoTextCandidate(type(make_candidate("x"))):
            async def text(self):
                return None

        blank = NoTextCandidate("fare #1")
        priced = make_candidate("fare #2", "$80")

        outcome = await selector.select_cheapest([blank, priced])

        assert outcome.candidate is priced
        assert outcome.priced_count == 1
