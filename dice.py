#!/usr/bin/env python3
'''
Calculates statistics of exploding dice and compares them against each other.
This module can be run by executing the main() function, which activates REPL
functionality. It also provides an API of sorts, in the form of the "handle"
function, which allows you to do things like
    results, f = handle('2d6+1 vs 1d20')
    f.show()
to get a nice plot.
'''
from die import InvalidDescriptor, ConstraintViolation
from calculator import DiceResult, FAIL_THRESHOLD
import calculator
from dice_functions import calculate, pmf
import dice_strings
import numpy as np
import sys
# Importing matplotlib.pyplot takes a while and it isn't needed until the
# user asks for a plot, so it's imported in the background.
plt = None
import threading
import traceback

plt_initialized = False
def import_plt():
    global plt
    global plt_initialized
    import matplotlib.pyplot as plt
    plt_initialized = True
import_thread = threading.Thread(target=import_plt, name='import matplotlib')
import_thread.start()

__all__ = ['main', 'handle', 'plot', 'format_table', 'format_double',
           'format_percentage', 'calculate']

def format_double(value: float, precision: int = 2) -> str:
    return f'{value:.{precision}f}'

def format_percentage(value: float, precision: int = 1) -> str:
    return f'{value*100:.{precision}f} %'

def format_table(results: list[DiceResult]) -> str:
    '''
    Returns a plain text table with one column per dice.
    results: A list of DiceResult objects, as returned by calculate()
    '''
    rows = [['Dice'] + [r.dice.name for r in results]]
    for attr, label in dice_strings.row_labels.items():
        rows.append([label] + [format_double(getattr(r, attr)) for r in results])
    rows.append([dice_strings.fail_label.format(k=FAIL_THRESHOLD)] +
                [format_percentage(r.p_fail) for r in results])
    for k in range(4, len(results[0].p_greater_than), 4):
        rows.append([dice_strings.greater_label.format(k=k)] +
                    [format_percentage(r.p_greater_than[k]) for r in results])
    rows.append([dice_strings.win_title])
    for index, r in enumerate(results):
        rows.append([dice_strings.win_label.format(name=r.dice.name)] +
                    [format_percentage(other.win_probabilities[index][1]) for other in results])
    widths = [max(len(row[i]) for row in rows if len(row) > i) for i in range(len(rows[0]))]
    lines = []
    for row in rows:
        cells = [row[0].ljust(widths[0])] + [c.rjust(w) for c, w in zip(row[1:], widths[1:])]
        lines.append('  '.join(cells).rstrip())
    return '\n'.join(lines)

def plot(results: list[DiceResult], name: str) -> 'matplotlib.figure.Figure': # type: ignore
    '''
    Plots the distribution of every dice in results, plus the cumulative
    probability on a second axis.
    name: The window title.
    '''
    global plt_initialized, plt
    # If matplotlib isn't imported yet, we wait
    if not plt_initialized:
        import_thread.join()
        plt_initialized = True
    assert plt is not None
    fig, ax = plt.subplots()
    if fig.canvas.manager is not None:
        fig.canvas.manager.set_window_title(name)
    plt.title('Distribution of ' + name)
    ax2 = ax.twinx()
    ax2.set_ylim(-.05, 1.05)
    for r in results:
        start, y = pmf(r.dice)
        x = np.arange(start, start+len(y))
        if len(results) == 1:
            ax.stem(x, y, label=r.dice.name, basefmt='')
        else:
            ax.plot(x, y, '.-', label=r.dice.name)
        ax2.plot(x, np.cumsum(y), '--', alpha=.5)
    ax.set_ylabel('Probability')
    ax2.set_ylabel('Cumulative')
    fig.legend()
    return fig

def handle(text: str) -> 'tuple[list[DiceResult], matplotlib.figure.Figure]': # type: ignore
    '''
    text: A request such as "2d6+1 vs 1d20"
    Returns (results, f) where results is a list of DiceResult objects, one
    per dice, and f is a matplotlib figure instance.
    Ex:
    results, f = handle('3d4 vs 2d6')
    f.savefig('file.png')
    '''
    results = calculate(text)
    return results, plot(results, text)

def process_input(text: str, show_plot: bool = False):
    '''Internal function. Calculates and prints the results for text.'''
    results = calculate(text)
    print(format_table(results))
    if show_plot:
        plot(results, text).show()
        print('Plotting in other window. That window must be closed to continue.')

def _run(text: str, show_plot: bool = False):
    try:
        process_input(text, show_plot)
    except (InvalidDescriptor, ConstraintViolation) as e:
        print(e)
    except Exception:
        print('Error encountered, aborting input.')
        traceback.print_exc()

def main():
    '''
    Starts an interactive session where the user can type in requests
    such as 2d6 vs 1d12, and the results will be printed. Words given on the
    command line are treated as a single request instead.
    '''
    if len(sys.argv) > 1:
        _run(' '.join(sys.argv[1:]))
        return
    print('Getting started: Try typing 2d6+1 or 2d6 vs 1d12.')
    while True:
        print('\nEnter q to quit. Enter help for options.')
        try:
            text = input('>>').strip()
        except EOFError:
            break
        lower = text.lower()
        if lower in ('q', 'quit', 'exit'):
            break
        if lower in ('?', 'h', 'help'):
            print(dice_strings.help_string)
            continue
        if lower == 'verbose':
            calculator.PRINT_CALCULATIONS[0] = not calculator.PRINT_CALCULATIONS[0]
            print('Verbose output', 'on' if calculator.PRINT_CALCULATIONS[0] else 'off')
            continue
        if lower.startswith('plot'):
            _run(text[4:], show_plot=True)
        elif len(text) > 0:
            _run(text)


if __name__ == '__main__':
    print('\33]0;Dice Calculator\a', end='')
    sys.stdout.flush()
    main()
