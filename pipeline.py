"""
Composable operations over Generators.

Every operation takes ownership of its source generator(s) and either
returns a new lazy Generator or drives the source to produce a single
result. Called without a source, an operation returns a GenPipe that
remembers its parameters and is applied with the pipe operator:

    result = (
        ranges_of(0, 100)
        | pipeline.transforms(lambda x: x * x)
        | pipeline.filters(lambda x: x % 2 == 0)
        | pipeline.take(5)
        | pipeline.list()
    )

Several operations share a name with a builtin (list, zip, all, ...),
so use this module qualified. Inside it the builtins are reached
through the `builtins` module.
"""

import builtins
import functools
import inspect
import logging
import operator
from typing import Any, Callable, Optional

from lazy import Generator, claim, generator, is_source

logger = logging.getLogger(__name__)


class GenPipe:
    """
    A pipeline operation waiting for its source.

    Holds only the operation's parameters; nothing runs until a
    generator is piped in. Applying it returns whatever the operation
    returns, a Generator or a plain result.
    """

    def __init__(self, stage: Callable[[Any], Any], name: str = "stage"):
        self._stage = stage
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def __call__(self, source):
        return self._stage(source)

    def __ror__(self, source):
        if not is_source(source):
            return NotImplemented
        logger.debug(f"Applying stage {self._name}")
        return self._stage(source)

    def __repr__(self):
        return f"GenPipe({self._name})"


_PENDING = object()


def pipeable(sources: int = 1, check: Optional[Callable[[str, dict], None]] = None):
    """
    Give an operation both call shapes.

    With its first `sources` positional arguments being generators the
    operation runs immediately; otherwise the arguments are captured in
    a GenPipe. Generators among the captured arguments change owner at
    capture time.

    Both shapes are bound against the operation's signature, and `check`
    sees the bound arguments, before any source is claimed. A bad call
    leaves the caller's generators untouched.
    """
    def decorate(operation):
        signature = inspect.signature(operation)

        @functools.wraps(operation)
        def dispatch(*args, **kwargs):
            leading = args[:sources]
            applied = len(leading) == sources and builtins.all(is_source(a) for a in leading)
            if not applied and len(leading) == sources and is_source(leading[0]):
                raise TypeError(
                    f"{operation.__name__}() takes {sources} sources, "
                    f"got {', '.join(type(a).__name__ for a in leading)}"
                )

            bound = signature.bind(*(args if applied else (_PENDING,) + args), **kwargs)
            if check is not None:
                check(operation.__name__, bound.arguments)
            if applied:
                return operation(*args, **kwargs)
            captured = tuple(claim(a) if isinstance(a, Generator) else a for a in args)

            def stage(source):
                return operation(source, *captured, **kwargs)
            return GenPipe(stage, operation.__name__)
        return dispatch
    return decorate


def _check_count(op_name, arguments):
    n = operator.index(arguments["n"])
    if n < 0:
        raise ValueError(f"{op_name} count must be >= 0, got {n}")


# --------- generator -> generator ----------

@pipeable()
def enumerate(source) -> Generator:
    """Pair each element with its zero-based position: (index, element)."""
    return _enumerate(claim(source))


@generator
def _enumerate(gen):
    with gen:
        index = 0
        for elem in gen:
            yield (index, elem)
            index += 1


@pipeable()
def transforms(source, function: Callable[[Any], Any]) -> Generator:
    """Apply function to each element as it is pulled."""
    return _transforms(claim(source), function)


@generator
def _transforms(gen, function):
    with gen:
        for elem in gen:
            yield function(elem)


@pipeable()
def filters(source, predicate: Callable[[Any], bool]) -> Generator:
    """Keep the elements predicate accepts."""
    return _select(claim(source), predicate, True)


@pipeable()
def extract(source, predicate: Callable[[Any], bool]) -> Generator:
    """Keep the elements predicate rejects, the inverse of filters()."""
    return _select(claim(source), predicate, False)


@generator
def _select(gen, predicate, keep):
    with gen:
        for elem in gen:
            if bool(predicate(elem)) is keep:
                yield elem


@pipeable(sources=2)
def zip(first, second) -> Generator:
    """Advance both sources together; stop as soon as either runs out."""
    return _zip(claim(first), claim(second))


def zip_with(second) -> GenPipe:
    """Curried zip(): the piped generator becomes the left side."""
    return zip(second)


@generator
def _zip(first, second):
    with first, second:
        while True:
            left = first.next()
            if not left:
                return
            right = second.next()
            if not right:
                return
            yield (left.value(), right.value())


@pipeable(sources=2)
def join(first, second, convert: Optional[Callable[[Any], Any]] = None) -> Generator:
    """
    Everything from first, then everything from second.

    `convert` is applied to the elements of second, bringing them to
    the element type of first.
    """
    return _join(claim(first), claim(second), convert)


@generator
def _join(first, second, convert):
    with first, second:
        yield from first
        for elem in second:
            yield elem if convert is None else convert(elem)


@pipeable()
def flatten(source, convert: Optional[Callable[[Any], Any]] = None) -> Generator:
    """Expand each (a, b) pair into a then b, converting b if asked."""
    return _flatten(claim(source), convert)


@generator
def _flatten(gen, convert):
    with gen:
        for first, second in gen:
            yield first
            yield second if convert is None else convert(second)


@pipeable(check=_check_count)
def take(source, n: int) -> Generator:
    """The first n elements; the rest of the source is never pulled."""
    return _take(claim(source), operator.index(n))


@generator
def _take(gen, n):
    with gen:
        taken = 0
        while taken < n:
            produced = gen.next()
            if not produced:
                return
            taken += 1
            yield produced.value()


@pipeable(check=_check_count)
def skip(source, n: int) -> Generator:
    """Drop the first n elements, then pass the rest through."""
    return _skip(claim(source), operator.index(n))


@generator
def _skip(gen, n):
    with gen:
        skipped = 0
        for elem in gen:
            if skipped < n:
                skipped += 1
                continue
            yield elem


# --------- generator -> result ----------

@pipeable()
def count(source, predicate: Optional[Callable[[Any], bool]] = None) -> int:
    """Number of elements, or of elements matching predicate."""
    total = 0
    with claim(source) as gen:
        for elem in gen:
            if predicate is None or predicate(elem):
                total += 1
    return total


@pipeable()
def all(source, predicate: Callable[[Any], bool]) -> bool:
    """True unless some element fails predicate; true for no elements."""
    with claim(source) as gen:
        for elem in gen:
            if not predicate(elem):
                return False
    return True


@pipeable()
def none(source, predicate: Callable[[Any], bool]) -> bool:
    """True unless some element matches predicate; true for no elements."""
    with claim(source) as gen:
        for elem in gen:
            if predicate(elem):
                return False
    return True


@pipeable()
def any(source, predicate: Callable[[Any], bool]) -> bool:
    """True as soon as an element matches predicate."""
    with claim(source) as gen:
        for elem in gen:
            if predicate(elem):
                return True
    return False


@pipeable()
def position(source, predicate: Callable[[Any], bool]) -> int:
    """
    Index of the first element matching predicate.

    When nothing matches this is the number of elements seen, which
    equals the length of the source.
    """
    index = 0
    with claim(source) as gen:
        for elem in gen:
            if predicate(elem):
                return index
            index += 1
    return index


@pipeable()
def find(source, predicate: Callable[[Any], bool], default: Any = None) -> Any:
    """First element matching predicate, or default."""
    with claim(source) as gen:
        for elem in gen:
            if predicate(elem):
                return elem
    return default


@pipeable()
def collect(source, factory: Callable[[], Any] = builtins.set):
    """Add every element to a new set-like container made by factory."""
    container = factory()
    with claim(source) as gen:
        for elem in gen:
            container.add(elem)
    return container


@pipeable()
def list(source, factory: Callable[[], Any] = builtins.list):
    """Append every element, in order, to a new sequence made by factory."""
    container = factory()
    with claim(source) as gen:
        for elem in gen:
            container.append(elem)
    return container
