help_string = '''
Type one or more dice, separated by "vs", and press enter.
 Dice:
   Written as {count}d{sides}{modifier}, eg 2d6+1, d20, 3d8-2. "w" works instead of "d",
   so 2w6 is the same as 2d6. The count is optional and defaults to 1.
   count must be between 1 and 16, sides between 2 and 100.

 Exploding dice:
   Every die explodes: rolling the highest side means you roll again and add the result,
   as often as it keeps happening. So a d6 never gives 6, but 7 through 11 are possible
   with probability 1/36 each, 13 through 17 with 1/216 each, and so on.

 vs:
   Compares up to 10 dice, eg "2d6 vs 1d12+1 vs 3d4". Each dice gets a column, and
   the bottom rows give the probability that the column's dice rolls strictly higher
   than the row's dice. Ties don't count as a win.

 plot:
   Start the input with "plot" to also see the distributions, eg "plot 2d6 vs 1d12".

 verbose:
   Toggles printing of every value as it's calculated.

 q, quit, exit:
   Leaves the program.'''

row_labels = {
    'expected_value': 'Expected value',
    'median': 'Median',
    'variance': 'Variance',
    'standard_deviation': 'Standard deviation',
}

fail_label = 'P(X < {k})'
greater_label = 'P(X >= {k})'
win_title = 'Win probability...'
win_label = '...against {name}'
