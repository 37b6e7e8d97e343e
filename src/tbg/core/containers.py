"""Small container helpers shared by the balancing engines.

All randomness flows through an injected ``RandomSource`` so callers can
replay a run exactly.
"""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, Iterator, Mapping, TypeVar

from tbg.contracts import RandomSource

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def random_index(random_source: RandomSource, length: int) -> int:
    """Uniform index in ``[0, length)`` drawn from ``random_source.rand()``."""
    if length <= 0:
        raise ValueError("length must be positive")
    # rand() is in [0, 1) but a substituted source may hand back 1.0
    return min(int(random_source.rand() * length), length - 1)


def shuffle_in_place(items: list[T], random_source: RandomSource) -> None:
    """Fisher-Yates shuffle of ``items``."""
    for i in range(len(items) - 1, 0, -1):
        j = random_index(random_source, i + 1)
        items[i], items[j] = items[j], items[i]


def group_by(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    grouped: dict[K, list[T]] = {}
    for item in items:
        grouped.setdefault(key(item), []).append(item)
    return grouped


def iter_descending_by_key(mapping: Mapping[K, T]) -> Iterator[tuple[K, T]]:
    for key in sorted(mapping, reverse=True):  # type: ignore[type-var]
        yield key, mapping[key]
