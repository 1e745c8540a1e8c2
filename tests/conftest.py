import gc
import weakref
from typing import Callable, List

import pytest


@pytest.fixture
def track_for_leaks() -> Callable[[object], None]:
    refs: List[weakref.ref] = []

    def track(instance: object) -> None:
        refs.append(weakref.ref(instance))

    yield track

    gc.collect()
    for ref in refs:
        assert ref() is None, "Instance should have been deallocated. Potential memory leak."
