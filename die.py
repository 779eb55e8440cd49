'''Dice model and descriptor parsing'''
from dataclasses import dataclass
import re

MIN_COUNT = 1
MAX_COUNT = 16
MIN_SIDES = 2
MAX_SIDES = 100

_DELIMITERS = re.compile(r'[dDwW+\-]')


class InvalidDescriptor(ValueError):
    '''Raised when a dice descriptor can't be read, ie "d" or "two dice".'''
    def __init__(self, descriptor: str, message: str|None = None):
        self.descriptor = descriptor
        if message is None:
            message = f'Invalid dice description: {descriptor}'
        super().__init__(message)


class ConstraintViolation(ValueError):
    '''Raised when a dice is outside of the supported count/sides bounds.'''


def pretty_name(count: int, sides: int, modifier: int) -> str:
    '''
    Returns the canonical name of a dice, "{count}d{sides}+{modifier}".
    The modifier part is left out if it's 0, and negative modifiers are
    written as "-{abs(modifier)}".
    Ex: pretty_name(2, 6, -1) returns "2d6-1"
    '''
    name = f'{count}d{sides}'
    if modifier != 0:
        name += ('+' if modifier > 0 else '-') + str(abs(modifier))
    return name


@dataclass(frozen=True, slots=True)
class Dice:
    '''
    An immutable dice expression, so count dice with sides sides each,
    summed up, plus modifier.

    count: An integer in [MIN_COUNT, MAX_COUNT]
    sides: An integer in [MIN_SIDES, MAX_SIDES]
    modifier: Any integer, added once to the sum of the dice.
    '''
    count: int
    sides: int
    modifier: int = 0

    def __post_init__(self):
        if self.count < MIN_COUNT:
            raise ConstraintViolation('Dice count must be positive')
        if self.count > MAX_COUNT:
            raise ConstraintViolation(f'Dice count may not exceed {MAX_COUNT}')
        if self.sides < MIN_SIDES:
            raise ConstraintViolation(
                f'Number of sides of a dice must be at least {MIN_SIDES}')
        if self.sides > MAX_SIDES:
            raise ConstraintViolation(f'Number of sides may not exceed {MAX_SIDES}')

    @property
    def name(self) -> str:
        return pretty_name(self.count, self.sides, self.modifier)

    @property
    def key(self) -> tuple[int, int, int]:
        '''The (count, sides, modifier) triple, used as cache key.'''
        return (self.count, self.sides, self.modifier)

    def __str__(self) -> str:
        return self.name

    def with_count(self, count: int|None = None, sides: int|None = None,
                   modifier: int|None = None) -> 'Dice':
        '''
        Returns a new Dice, replacing count, sides and modifier where they're given.
        Ex: parse('3d6+2').with_count(1) is 1d6+2,
            parse('3d6+2').with_count(2, modifier=0) is 2d6.
        '''
        return Dice(
            self.count if count is None else count,
            self.sides if sides is None else sides,
            self.modifier if modifier is None else modifier,
        )


def _to_int(token: str, descriptor: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise InvalidDescriptor(descriptor) from None


def parse(descriptor: str) -> Dice:
    '''
    Parses a dice descriptor like "1d8", "2w4+2" or "d20-1".
    The count may be left out, in which case it's 1. The sign of the
    modifier is negative if the descriptor contains a "-" anywhere.
    Raises InvalidDescriptor if the text can't be read, ConstraintViolation
    if the dice is out of bounds.
    '''
    tokens = _DELIMITERS.split(descriptor)
    if len(tokens) < 2:
        raise InvalidDescriptor(descriptor)
    count_str = tokens[0].strip()
    count = 1 if len(count_str) == 0 else _to_int(count_str, descriptor)
    sides = _to_int(tokens[1].strip(), descriptor)
    modifier = 0
    if len(tokens) > 2:
        modifier = _to_int(tokens[2].strip(), descriptor)
    if '-' in descriptor:
        modifier *= -1
    return Dice(count, sides, modifier)
