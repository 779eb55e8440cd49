'''Approximation of infinite sums'''
from typing import Callable

DEFAULT_THRESHOLD = 0.0001
DEFAULT_MIN_ITERATIONS = 20
DEFAULT_MAX_ITERATIONS = 5000
DEFAULT_START_INDEX = 1

def sum_to_infinity(f: Callable[[int], float], *,
                    threshold: float = DEFAULT_THRESHOLD,
                    min_iterations: int = DEFAULT_MIN_ITERATIONS,
                    max_iterations: int = DEFAULT_MAX_ITERATIONS,
                    start_index: int = DEFAULT_START_INDEX) -> float:
    '''
    Returns an approximation of f(start_index) + f(start_index+1) + ...
    f: A function mapping an integer index to the term to add.
    threshold: Terms at or below this count as negligible.
    min_iterations: The index has to reach at least this value before stopping.
    max_iterations: The index never goes past this value.
    start_index: The first index.

    The sum stops once both the last added term and the one after it are
    negligible, so a single small term (ie the 0 probability of rolling
    exactly 6 on an exploding d6) doesn't end the sum early.
    Ex: sum_to_infinity(lambda i: 0.5**i) is about 1.
    '''
    i = start_index
    total = f(i)
    next_term = f(i+1)
    while True:
        i += 1
        term = next_term
        next_term = f(i+1)
        total += term
        if i < min_iterations:
            continue
        if i >= max_iterations or (term <= threshold and next_term <= threshold):
            return total
