from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

from .errors import PreconditionError


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned box in model input space, corners in pixels.
    """

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.left + self.right) / 2.0, (self.top + self.bottom) / 2.0

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.left, self.top, self.right, self.bottom


@dataclass(frozen=True)
class Detection:
    """
    One labeled box produced by the decoder and kept (or not) by suppression.
    """

    class_index: int
    score: float
    box: BoundingBox

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.box.as_xyxy()


class LabelSet:
    """
    Ordered, read-only class names. Position in the set is the class index.
    """

    __slots__ = ("_names",)

    def __init__(self, names: Iterable[str]):
        names = tuple(str(n) for n in names)
        if not names:
            raise PreconditionError("Label set must contain at least one class name.")
        self._names = names

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def name_for(self, class_index: int) -> str:
        if not 0 <= class_index < len(self._names):
            return str(class_index)
        return self._names[class_index]

    def __len__(self) -> int:
        return len(self._names)

    def __getitem__(self, index: int) -> str:
        return self._names[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LabelSet):
            return NotImplemented
        return self._names == other._names

    def __hash__(self) -> int:
        return hash(self._names)

    def __repr__(self) -> str:
        return f"LabelSet({list(self._names)!r})"
