"""Tests for the exploding dice probability engine."""

import numpy as np
import pytest

import calculator
from calculator import DiceCalculator, DiceResult, ProbabilityCache
from die import Dice, parse


def calc(descriptor: str, cache: ProbabilityCache, competing=()) -> DiceCalculator:
    return DiceCalculator(parse(descriptor), [parse(x) for x in competing], cache)


class TestProbabilityEqual:
    def test_single_die(self, cache) -> None:
        c = calc("1d6", cache)
        for k in range(1, 6):
            assert c.probability_for_result_equal_to(k) == pytest.approx(1 / 6)
        assert c.probability_for_result_equal_to(7) == pytest.approx(1 / 36)
        assert c.probability_for_result_equal_to(13) == pytest.approx(1 / 216)

    def test_multiples_of_sides_impossible(self, cache) -> None:
        c = calc("1d6", cache)
        assert c.probability_for_result_equal_to(0) == 0.0
        assert c.probability_for_result_equal_to(6) == 0.0
        assert c.probability_for_result_equal_to(12) == 0.0

    def test_below_minimum(self, cache) -> None:
        assert calc("1d6", cache).probability_for_result_equal_to(-3) == 0.0
        assert calc("2d6", cache).probability_for_result_equal_to(1) == 0.0

    def test_single_die_with_modifier(self, cache) -> None:
        c = calc("1d4+2", cache)
        assert c.probability_for_result_equal_to(2) == 0.0
        assert c.probability_for_result_equal_to(3) == pytest.approx(1 / 4)
        assert c.probability_for_result_equal_to(6) == 0.0
        assert c.probability_for_result_equal_to(7) == pytest.approx(1 / 16)

    def test_explosion_count(self, cache) -> None:
        c = calc("1d4", cache)
        assert c.explosion_count(3) == 0
        assert c.explosion_count(9) == 2

    def test_two_dice(self, cache) -> None:
        c = calc("2d6", cache)
        assert c.probability_for_result_equal_to(2) == pytest.approx(1 / 36)
        # (2,5), (3,4), (4,3), (5,2); a 6 always explodes
        assert c.probability_for_result_equal_to(7) == pytest.approx(1 / 9)

    def test_modifier_applied_once(self, cache) -> None:
        assert calc("2d6+1", cache).probability_for_result_equal_to(8) == pytest.approx(1 / 9)
        assert calc("3d4-2", cache).probability_for_result_equal_to(1) == pytest.approx(1 / 64)

    def test_mass_sums_to_one(self, cache) -> None:
        for descriptor in ("1d6", "2d6", "3d4+2", "2d8-3", "1d100"):
            c = calc(descriptor, cache)
            assert np.sum(c.probability_array(-10, 700)) == pytest.approx(1.0, abs=1e-6)

    def test_probability_array(self, cache) -> None:
        arr = calc("1d4", cache).probability_array(0, 6)
        assert arr == pytest.approx([0, .25, .25, .25, 0, .0625])


class TestCumulative:
    def test_at_or_below_modifier_is_zero(self, cache) -> None:
        c = calc("1d6+3", cache)
        assert c.probability_for_result_less_or_equal_to(3) == 0.0
        assert c.probability_for_result_less_or_equal_to(-10) == 0.0
        assert c.probability_for_result_less_or_equal_to(4) == pytest.approx(1 / 6)

    def test_values(self, cache) -> None:
        c = calc("1d6", cache)
        assert c.probability_for_result_less_or_equal_to(3) == pytest.approx(0.5)
        assert c.probability_for_result_less_or_equal_to(5) == pytest.approx(5 / 6)
        assert c.probability_for_result_less_or_equal_to(6) == pytest.approx(5 / 6)
        assert c.probability_for_result_less_than(4) == pytest.approx(0.5)
        assert c.probability_for_result_greater_than(5) == pytest.approx(1 / 6)
        assert c.probability_for_result_greater_or_equal_to(2) == pytest.approx(5 / 6)

    def test_monotone_and_complementary(self, cache) -> None:
        c = calc("2d6+1", cache)
        previous = 0.0
        for k in range(-5, 200):
            at_most = c.probability_for_result_less_or_equal_to(k)
            assert at_most >= previous
            assert at_most + c.probability_for_result_greater_than(k) == pytest.approx(1.0)
            previous = at_most
        assert previous == pytest.approx(1.0)

    def test_order_of_queries_does_not_matter(self, cache) -> None:
        other = ProbabilityCache()
        a, b = calc("2d4", cache), calc("2d4", other)
        for k in (3, 9, 6, 20, 1):
            a.probability_for_result_less_or_equal_to(k)
        for k in range(0, 21):
            assert b.probability_for_result_less_or_equal_to(k) == pytest.approx(
                a.probability_for_result_less_or_equal_to(k))

    def test_large_k(self, cache) -> None:
        c = calc("1d4", cache)
        assert c.probability_for_result_less_or_equal_to(5000) == pytest.approx(1.0)


class TestCache:
    def test_equal_dice_share_tables(self, cache) -> None:
        first = DiceCalculator(parse("2d6"), cache=cache)
        value = first.probability_for_result_equal_to(7)
        assert Dice(2, 6) in cache
        assert cache.equal_table(Dice(2, 6, 0))[7] == value

    def test_fresh_calculator_reads_cached_value(self, cache) -> None:
        DiceCalculator(parse("1d6"), cache=cache).probability_for_result_equal_to(3)
        # a value that would never be calculated proves the table is used
        cache.equal_table(Dice(1, 6))[3] = 0.123
        assert DiceCalculator(Dice(1, 6, 0), cache=cache).probability_for_result_equal_to(3) == 0.123

    def test_separate_caches(self, cache) -> None:
        cache.equal_table(Dice(1, 6))[3] = 0.123
        other = ProbabilityCache()
        assert DiceCalculator(Dice(1, 6), cache=other).probability_for_result_equal_to(3) == pytest.approx(1 / 6)

    def test_default_cache(self) -> None:
        c = DiceCalculator(Dice(1, 8, 7))
        assert c.cache is calculator.default_cache
        c.probability_for_result_less_or_equal_to(10)
        assert Dice(1, 8, 7) in calculator.default_cache

    def test_clear(self, cache) -> None:
        DiceCalculator(Dice(1, 6), cache=cache).probability_for_result_less_or_equal_to(4)
        cache.clear()
        assert Dice(1, 6) not in cache


class TestStatistics:
    def test_expected_value_single_die(self, cache) -> None:
        # a d6 that explodes averages 3.5 * 6/5
        assert calc("1d6", cache).calculate_expected_value() == pytest.approx(4.2, abs=1e-3)
        assert calc("1d4", cache).calculate_expected_value() == pytest.approx(10 / 3, abs=1e-3)
        assert calc("1d6+2", cache).calculate_expected_value() == pytest.approx(6.2, abs=1e-3)

    def test_expected_value_multiple_dice(self, cache) -> None:
        single = calc("1d6", cache).calculate_expected_value()
        assert calc("2d6", cache).calculate_expected_value() == pytest.approx(2 * single)
        assert calc("3d6-2", cache).calculate_expected_value() == pytest.approx(3 * single - 2)

    def test_variance_matches_distribution(self, cache) -> None:
        c = calc("1d6", cache)
        arr = c.probability_array(0, 400)
        x = np.arange(0, 400)
        mu = np.sum(x * arr)
        assert c.calculate_variance() == pytest.approx(np.sum((x - mu)**2 * arr), rel=1e-3)

    def test_variance_uses_given_mean(self, cache) -> None:
        c = calc("1d4", cache)
        mu = c.calculate_expected_value()
        assert c.calculate_variance(mu) == c.calculate_variance()
        assert c.calculate_variance(mu + 1) == pytest.approx(c.calculate_variance() + 1, abs=1e-3)

    def test_variance_multiple_dice_is_single_die_variance(self, cache) -> None:
        single = calc("1d6", cache).calculate_variance()
        assert calc("2d6", cache).calculate_variance() == single
        assert calc("4d6+3", cache).calculate_variance() == pytest.approx(single, rel=1e-3)

    def test_standard_deviation(self, cache) -> None:
        assert calc("1d6", cache).calculate_standard_deviation(9.0) == 3.0

    def test_median(self, cache) -> None:
        assert calc("1d6", cache).calculate_median() == 3.0
        assert calc("1d4", cache).calculate_median() == 2.0
        assert calc("1d6+2", cache).calculate_median() == 5.0

    def test_median_multiple_dice(self, cache) -> None:
        c = calc("2d6", cache)
        median = c.calculate_median()
        assert c.probability_for_result_less_or_equal_to(median) >= 0.5
        assert c.probability_for_result_greater_or_equal_to(median) >= 0.5

    def test_probability_map(self, cache) -> None:
        p = calc("1d6", cache).calculate_probability_map()
        assert len(p) == 25
        assert p[0] == 1.0
        assert p[4] == pytest.approx(0.5)
        assert np.all(np.diff(p) <= 1e-12)
        assert len(calc("1d6", cache).calculate_probability_map(5)) == 5


class TestWinProbability:
    def test_ties_do_not_count(self, cache) -> None:
        c = calc("1d4", cache)
        # P(tie) is 1/5 for two exploding d4
        assert c.probability_to_win_against(parse("1d4")) == pytest.approx(0.4, abs=1e-3)

    def test_win_lose_tie_add_up(self, cache) -> None:
        d6, d4 = calc("1d6", cache), calc("1d4", cache)
        tie = float(np.dot(d6.probability_array(0, 200), d4.probability_array(0, 200)))
        total = (d6.probability_to_win_against(d4.dice)
                 + d4.probability_to_win_against(d6.dice) + tie)
        assert total == pytest.approx(1.0, abs=2e-3)

    def test_modifier_shifts_odds(self, cache) -> None:
        c = calc("1d6+3", cache)
        assert c.probability_to_win_against(parse("1d6")) > 0.6
        assert calc("1d6", cache).probability_to_win_against(parse("1d6+3")) < 0.3

    def test_win_probability_map(self, cache) -> None:
        c = calc("1d6", cache, ["1d6", "2d4"])
        names = [name for name, _ in c.calculate_win_probability_map()]
        assert names == ["1d6", "2d4"]


class TestCalculate:
    def test_result(self, cache) -> None:
        result = calc("1d6", cache, ["1d6"]).calculate()
        assert isinstance(result, DiceResult)
        assert result.dice == Dice(1, 6)
        assert result.expected_value == pytest.approx(4.2, abs=1e-3)
        assert result.median == 3.0
        assert result.standard_deviation == pytest.approx(np.sqrt(result.variance))
        assert result.p_fail == pytest.approx(0.5)
        assert len(result.p_greater_than) == 25
        assert result.win_probabilities[0][0] == "1d6"
        assert result.win_probabilities[0][1] == pytest.approx(3 / 7, abs=1e-3)

    def test_result_is_read_only(self, cache) -> None:
        result = calc("1d4", cache).calculate()
        with pytest.raises(AttributeError):
            result.median = 1.0  # type: ignore

    def test_verbose_output(self, cache, verbose, capsys) -> None:
        calc("1d4", cache, ["1d4"]).calculate()
        out = capsys.readouterr().out
        assert "E[1d4] = " in out
        assert "P[1d4 > 1d4] = " in out
