"""Positional pairing of batch inputs with batch results.

The embedding API returns vectors in the same order as the submitted
texts and carries no correlation id. BatchAligned holds the inputs as an
immutable tuple and only exposes `split` (extract ordered inputs for the
call) and `zip` (re-attach ordered results), so nothing can reorder or
filter in between.
"""

from typing import Callable, Generic, Iterable, List, Sequence, Tuple, TypeVar

T = TypeVar("T")
S = TypeVar("S")
R = TypeVar("R")


class AlignmentError(ValueError):
    """Raised when a result batch does not line up with its input batch."""


class BatchAligned(Generic[T]):
    __slots__ = ("_items",)

    def __init__(self, items: Iterable[T]):
        self._items: Tuple[T, ...] = tuple(items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def split(self, extract: Callable[[T], S]) -> List[S]:
        """Project every item, in order, into the payload sent to the callee."""
        return [extract(item) for item in self._items]

    def zip(self, results: Sequence[R]) -> List[Tuple[T, R]]:
        """Pair result i with item i.

        Raises:
            AlignmentError: If the result count differs from the item count
        """
        if len(results) != len(self._items):
            raise AlignmentError(
                f"Result count {len(results)} does not match "
                f"batch size {len(self._items)}"
            )
        return list(zip(self._items, results))
