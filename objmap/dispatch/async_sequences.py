"""
Asynchronous sequence dispatch: ``registry.from_async(rows).to(UserModel)``.

The mapped sequence suspends only where the source suspends and keeps
the source ordering; elements are never mapped concurrently.
"""

from collections.abc import AsyncIterator
from typing import TypeVar

from objmap.dispatch.sequences import _MappedSequence

T = TypeVar("T")


class MapFromAsyncIterable(_MappedSequence):
    """Maps an async iterable element by element."""

    def to(self, destination_type: type[T]) -> AsyncIterator[T]:
        return self._map(destination_type)

    async def to_list(self, destination_type: type[T]) -> list[T]:
        return [item async for item in self.to(destination_type)]

    async def _map(self, destination_type: type[T]) -> AsyncIterator[T]:
        create = self._creator(destination_type)
        async for item in self._values:
            if create is None:
                create = self._creator(destination_type, type(item))
            yield create(item)


class MapFromNullableAsyncIterable(_MappedSequence):
    """Maps an async iterable, passing ``None`` elements through untouched."""

    def to(self, destination_type: type[T]) -> AsyncIterator[T | None]:
        return self._map(destination_type)

    async def to_list(self, destination_type: type[T]) -> list[T | None]:
        return [item async for item in self.to(destination_type)]

    async def _map(self, destination_type: type[T]) -> AsyncIterator[T | None]:
        create = self._creator(destination_type)
        async for item in self._values:
            if item is None:
                yield None
                continue
            if create is None:
                create = self._creator(destination_type, type(item))
            yield create(item)
