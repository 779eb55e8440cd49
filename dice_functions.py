'''User-facing functions'''
import re
import numpy as np
from die import Dice, parse, InvalidDescriptor, ConstraintViolation
from calculator import DiceCalculator, DiceResult, ProbabilityCache
from series import sum_to_infinity

MAX_DICE = 10
# pmf() stops once this much probability mass is left over
PMF_TAIL = 1e-9

_SEPARATOR = re.compile(r'vs', re.IGNORECASE)

def split_request(text: str) -> list[str]:
    '''
    Splits a request like "2d6+1 vs 1d20" into its dice descriptors.
    Raises InvalidDescriptor for an empty request and ConstraintViolation
    for more than MAX_DICE descriptors.
    '''
    if len(text.strip()) == 0:
        raise InvalidDescriptor(text, 'Please enter at least one dice, ie 2d6+1')
    descriptors = [x.strip() for x in _SEPARATOR.split(text)]
    if len(descriptors) > MAX_DICE:
        raise ConstraintViolation(f'The maximum amount of dice to compare is {MAX_DICE}')
    return descriptors

def calculate(request: str|list[str|Dice], cache: ProbabilityCache|None = None) -> list[DiceResult]:
    '''
    Calculates one DiceResult per dice, in the order they were given.
    Every dice is compared against every dice of the request, itself included.
    request: A request string like "2d6 vs 1d20", or a list of descriptors
             and/or Dice objects.
    cache: A ProbabilityCache, defaults to the process-wide one.
    Raises the error of the first descriptor that can't be parsed, and
    nothing is calculated in that case.
    '''
    if isinstance(request, str):
        request = split_request(request)
    elif len(request) > MAX_DICE:
        raise ConstraintViolation(f'The maximum amount of dice to compare is {MAX_DICE}')
    dice = [x if isinstance(x, Dice) else parse(x) for x in request]
    return [DiceCalculator(x, dice, cache).calculate() for x in dice]

def pmf(dice: Dice, cache: ProbabilityCache|None = None) -> tuple[int, np.ndarray]:
    '''
    Returns (start, arr), where arr[x-start] is P(dice = x), starting at the
    lowest possible value and cut off once less than PMF_TAIL of the
    probability is left.
    Ex: pmf(parse('1d4')) gives (1, [.25, .25, .25, 0, .0625, ...])
    '''
    calc = DiceCalculator(dice, cache=cache)
    start = dice.count + dice.modifier
    stop = start + dice.sides
    while calc.probability_for_result_greater_or_equal_to(stop) > PMF_TAIL:
        stop += dice.sides
    return start, calc.probability_array(start, stop)

def total_probability(dice: Dice, cache: ProbabilityCache|None = None) -> float:
    '''Returns the sum of P(dice = k) over all k, which should be very close to 1.'''
    calc = DiceCalculator(dice, cache=cache)
    return sum_to_infinity(calc.probability_for_result_equal_to,
                           start_index=dice.modifier,
                           min_iterations=dice.count * dice.sides + dice.modifier)

def mean(start: int, arr: np.ndarray) -> float:
    '''Returns the mean of the distribution (start, arr), as returned by pmf().'''
    x = np.arange(start, start+len(arr))
    return float(np.sum(x * arr))

def var(start: int, arr: np.ndarray) -> float:
    '''Returns the variance of the distribution (start, arr).'''
    x = np.arange(start, start+len(arr))
    mu = mean(start, arr)
    return max(float(np.sum(arr * (x-mu)**2)), 0.0)

def sd(start: int, arr: np.ndarray) -> float:
    '''Returns the standard deviation of the distribution (start, arr).'''
    return float(np.sqrt(var(start, arr)))
