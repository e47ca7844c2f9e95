from __future__ import annotations

from hypothesis import strategies as st


def die_faces(count: int) -> st.SearchStrategy[list]:
    return st.lists(st.integers(min_value=1, max_value=6), min_size=count, max_size=count)


def army_counts(min_value: int = 1, max_value: int = 60) -> st.SearchStrategy[int]:
    return st.integers(min_value=min_value, max_value=max_value)


def seeds() -> st.SearchStrategy[int]:
    return st.integers(min_value=0, max_value=2**32 - 1)
