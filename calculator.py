'''
Probability calculations for exploding dice.

A single die explodes: rolling the highest side adds another roll of the
same die, so a d4 can give 1, 2, 3, 5, 6, 7, 9, ... but never a multiple of 4.
The probability of a value drops by a factor of sides per explosion, so
P(1d4 = 6) = 1/16 and P(1d4 = 9) = 1/64. Sums of several dice are computed by
convolution, and every moment is approximated with series.sum_to_infinity.
'''
from dataclasses import dataclass
import numpy as np
from die import Dice
from series import sum_to_infinity

PRINT_CALCULATIONS = [False]
PROBABILITY_MAP_SIZE = 25
FAIL_THRESHOLD = 4

CacheKey = tuple[int, int, int]


class ProbabilityCache:
    '''
    Memoized values of P(X = k) and P(X <= k).
    There's one table per dice and per kind, keyed by Dice.key, so two equal
    dice share their values no matter which calculator filled them in.
    Tables only ever grow, and recomputing a value gives the same number.
    '''
    def __init__(self):
        self.equal: dict[CacheKey, dict[int, float]] = {}
        self.less_or_equal: dict[CacheKey, dict[int, float]] = {}

    def equal_table(self, dice: Dice) -> dict[int, float]:
        return self.equal.setdefault(dice.key, {})

    def less_or_equal_table(self, dice: Dice) -> dict[int, float]:
        return self.less_or_equal.setdefault(dice.key, {})

    def __contains__(self, dice: Dice) -> bool:
        return dice.key in self.equal or dice.key in self.less_or_equal

    def clear(self):
        self.equal.clear()
        self.less_or_equal.clear()

default_cache = ProbabilityCache()


@dataclass(frozen=True, eq=False)
class DiceResult:
    '''Everything the calculator knows about one dice.'''
    dice: Dice
    expected_value: float
    median: float
    variance: float
    standard_deviation: float
    # P(X < FAIL_THRESHOLD)
    p_fail: float
    # p_greater_than[k] is P(X >= k)
    p_greater_than: np.ndarray
    # (name of competing dice, P(self > competing dice)), in input order
    win_probabilities: tuple[tuple[str, float], ...]


def _trace(text: str):
    if PRINT_CALCULATIONS[0]:
        print(text)


class DiceCalculator:
    '''
    Calculates probabilities and statistics of a dice.

    dice: The Dice to look at.
    competing: Dice to calculate win probabilities against, usually every dice
               of the request, including this one.
    cache: A ProbabilityCache. Calculators sharing a cache share their work.
           Defaults to the process-wide default_cache.
    '''
    def __init__(self, dice: Dice, competing=(), cache: ProbabilityCache|None = None):
        self.dice = dice
        self.competing = list(competing)
        self.cache = default_cache if cache is None else cache

    def _calculator(self, dice: Dice) -> 'DiceCalculator':
        return DiceCalculator(dice, cache=self.cache)

    def explosion_count(self, k: int) -> int:
        '''
        The number of times a single die exploded if its roll (without
        modifier) is k, ie 2 for a d4 and k = 9.
        '''
        return k // self.dice.sides

    def probability_for_result_equal_to(self, k: int) -> float:
        '''Returns P(X = k).'''
        table = self.cache.equal_table(self.dice)
        if k not in table:
            table[k] = self._probability_for_result_equal_to(k)
        return table[k]

    def _probability_for_result_equal_to(self, k: int) -> float:
        count, sides, modifier = self.dice.key
        raw = k - modifier
        if raw < 0:
            return 0.0
        if count == 1:
            if raw % sides == 0:
                # the highest side always explodes, so multiples of sides can't happen
                return 0.0
            return float(sides) ** -(self.explosion_count(raw) + 1)
        if modifier != 0:
            # the modifier is added once, to the sum
            unmodified = self._calculator(self.dice.with_count(modifier=0))
            return unmodified.probability_for_result_equal_to(raw)
        # X = (one die) + (count-1 dice), so
        # P(X = k) = sum over i of P(one die = i) * P(the others = k-i)
        single = self._calculator(self.dice.with_count(1))
        rest = self._calculator(self.dice.with_count(count-1))
        heads = np.array([single.probability_for_result_equal_to(i) for i in range(1, k)])
        tails = np.array([rest.probability_for_result_equal_to(k-i) for i in range(1, k)])
        return float(np.dot(heads, tails))

    def probability_for_result_less_or_equal_to(self, k: int) -> float:
        '''
        Returns P(X <= k), which is 0 for k <= modifier and
        P(X <= k-1) + P(X = k) otherwise.
        Works upwards from the closest cached value instead of recursing,
        so large k are fine.
        '''
        table = self.cache.less_or_equal_table(self.dice)
        if k in table:
            return table[k]
        lowest = self.dice.modifier
        if k <= lowest:
            table[k] = 0.0
            return 0.0
        known = k - 1
        while known > lowest and known not in table:
            known -= 1
        total = table.get(known, 0.0)
        for i in range(known+1, k+1):
            total += self.probability_for_result_equal_to(i)
            table[i] = total
        return total

    def probability_for_result_less_than(self, k: int) -> float:
        return self.probability_for_result_less_or_equal_to(k-1)

    def probability_for_result_greater_than(self, k: int) -> float:
        return 1 - self.probability_for_result_less_or_equal_to(k)

    def probability_for_result_greater_or_equal_to(self, k: int) -> float:
        return 1 - self.probability_for_result_less_than(k)

    def probability_array(self, start: int, stop: int) -> np.ndarray:
        '''Returns [P(X = start), P(X = start+1), ..., P(X = stop-1)].'''
        return np.array([self.probability_for_result_equal_to(k) for k in range(start, stop)])

    def calculate_probability_map(self, length: int = PROBABILITY_MAP_SIZE) -> np.ndarray:
        '''Returns an array whose kth entry is P(X >= k), for k in [0, length).'''
        return np.array([self.probability_for_result_greater_or_equal_to(k)
                         for k in range(length)])

    def calculate_expected_value(self) -> float:
        if self.dice.count == 1:
            out = sum_to_infinity(lambda i: i * self.probability_for_result_equal_to(i),
                                  start_index=self.dice.modifier)
        else:
            # linearity of expectation, so no convolutions needed
            single = self._calculator(self.dice.with_count(1, modifier=0))
            out = self.dice.count * single.calculate_expected_value() + self.dice.modifier
        _trace(f'E[{self.dice}] = {out}')
        return out

    def calculate_variance(self, expected_value: float|None = None) -> float:
        '''
        Returns the variance of a single die of this dice.
        expected_value: The mean to use for a single die, calculated if not given.
                        Ignored for more than one die, where the single die's own
                        mean is used.
        Note that for count > 1 this is not count times the single die variance,
        the result is the same as for count == 1.
        '''
        if self.dice.count != 1:
            return self._calculator(self.dice.with_count(1)).calculate_variance()
        if expected_value is None:
            expected_value = self.calculate_expected_value()
        mu = expected_value
        out = sum_to_infinity(lambda i: (mu - i)**2 * self.probability_for_result_equal_to(i),
                              start_index=self.dice.modifier)
        _trace(f'Var[{self.dice}] = {out}')
        return out

    def calculate_standard_deviation(self, variance: float) -> float:
        return float(np.sqrt(variance))

    def calculate_median(self) -> float:
        '''
        Returns the smallest i with P(X <= i) >= 0.5 and P(X >= i) >= 0.5.
        If the cumulative probability jumps past 0.5 without such an i, the
        median lies between two values and i - 0.5 is returned.
        '''
        i = 1 + self.dice.modifier
        while True:
            at_most = self.probability_for_result_less_or_equal_to(i)
            if at_most >= 0.5 and self.probability_for_result_greater_or_equal_to(i) >= 0.5:
                return float(i)
            if at_most > 0.5:
                return i - 0.5
            i += 1

    def probability_to_win_against(self, other: Dice) -> float:
        '''
        Returns P(self > other) for independent rolls. Ties don't count as
        a win, so two identical dice give less than 0.5 each.
        '''
        other_calculator = self._calculator(other)
        out = sum_to_infinity(
            lambda i: (self.probability_for_result_equal_to(i)
                       * other_calculator.probability_for_result_less_than(i)),
            start_index=min(self.dice.modifier, other.modifier),
            # terms stay small for a long time on big dice
            min_iterations=self.dice.sides * self.dice.count)
        _trace(f'P[{self.dice} > {other}] = {out}')
        return out

    def calculate_win_probability_map(self) -> tuple[tuple[str, float], ...]:
        return tuple((other.name, self.probability_to_win_against(other))
                     for other in self.competing)

    def calculate(self) -> DiceResult:
        '''Calculates all values and returns them as a DiceResult.'''
        expected_value = self.calculate_expected_value()
        variance = self.calculate_variance(expected_value)
        return DiceResult(
            dice=self.dice,
            expected_value=expected_value,
            median=self.calculate_median(),
            variance=variance,
            standard_deviation=self.calculate_standard_deviation(variance),
            p_fail=self.probability_for_result_less_than(FAIL_THRESHOLD),
            p_greater_than=self.calculate_probability_map(),
            win_probabilities=self.calculate_win_probability_map(),
        )
