"""
Suspendable, single-owner sequence producer.

A Generator wraps one suspended continuation (a native Python generator
or any iterator) together with the last value it produced and its
lifecycle state. Values are pulled one at a time with next(); peek()
re-reads the current value without resuming anything. A failure raised
while producing is handed to the caller of next() exactly once, after
which the generator stays exhausted.

Handles are not shared: take() moves the continuation into a new handle
and leaves the old one released. Every pipeline operation does this to
the generator passed in.
"""

import functools
import logging
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Optional

from optional import Alternative

logger = logging.getLogger(__name__)


class TerminalDereferenceError(LookupError):
    """Raised when the value at an end-of-iteration position is requested."""
    pass


class GeneratorOwnershipError(RuntimeError):
    """Raised when a generator handle is used after its ownership moved away."""
    pass


class GeneratorState(str, Enum):
    """Lifecycle of a Generator"""
    UNLAUNCHED = "unlaunched"
    SUSPENDED = "suspended"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class Generator:
    """
    A forward-only, consume-once sequence of values.

    States:
      - UNLAUNCHED: continuation created but never resumed
      - SUSPENDED: parked right after producing the value peek() returns
      - FAILED: the last resumption raised; the error was re-raised to
        the caller of next() and is kept in `failure`
      - EXHAUSTED: nothing more will ever be produced
    """

    def __init__(self, continuation: Optional[Iterator] = None):
        self._continuation = continuation
        self._value = Alternative()
        self._failure: Optional[Exception] = None
        self._launched = False
        self._released = False
        if continuation is None:
            self._state = GeneratorState.EXHAUSTED
        else:
            self._state = GeneratorState.UNLAUNCHED

    @classmethod
    def of(cls, iterable: Iterable) -> "Generator":
        """Wrap any iterable; production order is its iteration order."""
        return cls(iter(iterable))

    # --------- state ----------
    @property
    def state(self) -> GeneratorState:
        return self._state

    @property
    def launched(self) -> bool:
        """True once the continuation has been resumed at least once."""
        return self._launched

    @property
    def released(self) -> bool:
        """True when ownership of this handle was transferred with take()."""
        return self._released

    @property
    def failure(self) -> Optional[Exception]:
        return self._failure

    def has_next(self) -> bool:
        """
        True while the continuation exists and has not completed.

        This does not promise that another value is ready, only that
        asking for one with next() will resume the continuation.
        """
        return self._continuation is not None and self._state in (
            GeneratorState.UNLAUNCHED,
            GeneratorState.SUSPENDED,
        )

    # --------- production ----------
    def peek(self) -> Alternative:
        """Current value without resuming; empty before the first next()."""
        return self._value.copy()

    def next(self) -> Alternative:
        """Resume once and return the produced value, or empty when done."""
        if self._state is GeneratorState.FAILED:
            # The failure was already delivered; from here on we are just done.
            self._state = GeneratorState.EXHAUSTED
            return Alternative()
        if not self.has_next():
            return Alternative()

        self._launched = True
        try:
            produced = next(self._continuation)
        except StopIteration:
            self._finish(GeneratorState.EXHAUSTED)
            return Alternative()
        except Exception as e:
            logger.debug(f"Production failed with {type(e).__name__}: {e}")
            self._finish(GeneratorState.FAILED)
            self._failure = e
            raise

        self._value.set(produced)
        self._state = GeneratorState.SUSPENDED
        return self._value.copy()

    def _finish(self, state: GeneratorState) -> None:
        self._value.reset()
        self._continuation = None
        self._state = state

    # --------- ownership ----------
    def take(self) -> "Generator":
        """Move everything into a new handle; this one becomes released."""
        if self._released:
            raise GeneratorOwnershipError("Generator handle was already transferred")
        moved = Generator()
        moved._continuation, self._continuation = self._continuation, None
        moved._value = self._value.take()
        moved._failure, self._failure = self._failure, None
        moved._launched = self._launched
        moved._state, self._state = self._state, GeneratorState.EXHAUSTED
        self._released = True
        logger.debug(f"Generator ownership transferred (state={moved._state.value})")
        return moved

    def close(self) -> None:
        """Release the continuation without producing anything further."""
        continuation, self._continuation = self._continuation, None
        if continuation is not None:
            if self._state is not GeneratorState.EXHAUSTED:
                logger.debug(f"Releasing unfinished generator (state={self._state.value})")
            closer = getattr(continuation, "close", None)
            if closer is not None:
                closer()
        self._value.reset()
        self._state = GeneratorState.EXHAUSTED

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # --------- iteration ----------
    def __iter__(self) -> "GeneratorIterator":
        return GeneratorIterator(self)

    def __repr__(self):
        return f"Generator(state={self._state.value}, value={self._value!r})"


class GeneratorIterator:
    """
    Forward cursor over a Generator.

    Creating one performs the first next() right away, so the first
    value is ready before anything is dereferenced. A cursor with no
    generator, or whose generator ran out, sits at the end position.

    The position belongs to the generator, not the cursor: every cursor
    over one generator sees the value it last produced, and advancing
    any of them moves them all.
    """

    def __init__(self, gen: Optional[Generator] = None):
        self._gen = gen
        self._end = gen is None
        self._handed_out = False
        if gen is not None:
            self.advance()

    @classmethod
    def end(cls) -> "GeneratorIterator":
        return cls()

    @property
    def at_end(self) -> bool:
        # Another cursor may have drained the shared generator.
        if not self._end and not self._gen.peek():
            self._end = True
        return self._end

    def advance(self) -> "GeneratorIterator":
        if self.at_end:
            return self
        self._handed_out = False
        if not self._gen.next():
            self._end = True
        return self

    def value(self) -> Any:
        if self.at_end:
            raise TerminalDereferenceError("Dereferencing a terminal position")
        return self._gen.peek().value()

    def __iter__(self):
        return self

    def __next__(self):
        if self._handed_out:
            self.advance()
        if self.at_end:
            raise StopIteration
        self._handed_out = True
        return self.value()

    def __eq__(self, other):
        """Equal when both are at the end, or both sit on the same generator."""
        if not isinstance(other, GeneratorIterator):
            return NotImplemented
        if self.at_end or other.at_end:
            return self.at_end and other.at_end
        return self._gen is other._gen


def generator(func: Callable[..., Iterator]) -> Callable[..., Generator]:
    """
    Decorator turning a generator function into a Generator factory.

    Calling the decorated function runs none of its body; the body
    starts on the first next().
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return Generator(func(*args, **kwargs))
    return wrapper


def generator_of(iterable: Iterable) -> Generator:
    """Expose any container or iterable as a Generator."""
    return Generator.of(iterable)


def claim(source: Any) -> Generator:
    """
    Take ownership of a pipeline source.

    Accepts a Generator (moved out of the caller's handle) or any
    object with a generator() accessor, such as a container.
    """
    if isinstance(source, Generator):
        return source.take()
    if is_source(source):
        produced = source.generator()
        if not isinstance(produced, Generator):
            raise TypeError(
                f"{type(source).__name__}.generator() returned {type(produced).__name__}, not Generator"
            )
        return produced
    raise TypeError(f"Expected a Generator source, got {type(source).__name__}")


def is_source(obj: Any) -> bool:
    """
    A Generator, or a container instance with a generator() accessor.

    Container classes are not sources: their generator attribute is
    unbound, and they are passed around as collect()/list() factories.
    """
    if isinstance(obj, Generator):
        return True
    return not isinstance(obj, type) and callable(getattr(obj, "generator", None))
