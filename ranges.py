"""Lazy arithmetic progressions."""

import operator

from lazy import Generator, generator


def ranges_of(start: int, stop: int, step: int = 1) -> Generator:
    """
    Produce start, start+step, start+2*step, ... up to stop (exclusive).

    A positive step counts up while the value is below stop, a negative
    step counts down while it is above stop. A zero step, or a start
    already past stop in the step's direction, produces nothing.
    """
    start, stop, step = operator.index(start), operator.index(stop), operator.index(step)
    return _progression(start, stop, step)


@generator
def _progression(start, stop, step):
    if step == 0 or (start - stop) * step > 0:
        return
    current = start
    if step > 0:
        while current < stop:
            yield current
            current += step
    else:
        while current > stop:
            yield current
            current += step
