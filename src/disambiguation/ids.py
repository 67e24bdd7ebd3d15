"""Disambiguation id generators."""

from __future__ import annotations

import itertools
from typing import Protocol
from uuid import uuid4

DEFAULT_ID_PREFIX = "dis-"


class IdGenerator(Protocol):
    def new_id(self) -> str: ...


class UuidIdGenerator:
    """Random ids of the form ``dis-<32 hex chars>``."""

    def __init__(self, prefix: str = DEFAULT_ID_PREFIX) -> None:
        self.prefix = prefix

    def new_id(self) -> str:
        return f"{self.prefix}{uuid4().hex}"


class SequentialIdGenerator:
    """Deterministic ids (``dis-1``, ``dis-2``, ...), mainly for tests and replays."""

    def __init__(self, prefix: str = DEFAULT_ID_PREFIX, start: int = 1) -> None:
        self.prefix = prefix
        self._counter = itertools.count(start)

    def new_id(self) -> str:
        return f"{self.prefix}{next(self._counter)}"
