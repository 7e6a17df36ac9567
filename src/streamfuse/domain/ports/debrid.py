"""Port for debrid instant-availability APIs."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class DebridApiPort(Protocol):
    """One debrid service's cache lookup.

    instant_availability() receives at most max_batch_size hashes and returns
    only the hashes the service reported on. Raises DebridUnavailable when
    the service cannot be queried.
    """

    @property
    def name(self) -> str: ...

    @property
    def max_batch_size(self) -> int: ...

    async def instant_availability(self, hashes: list[str]) -> dict[str, bool]: ...
