from __future__ import annotations

from typing import Tuple

from hypothesis import strategies as st

from retrodasm.arch import available, get_architecture
from retrodasm.arch.profile import Architecture

# Leave room for the longest instruction below the top of a 16-bit space.
ADDRESS_LIMIT = 0xFF00


def architectures() -> st.SearchStrategy[Architecture]:
    return st.sampled_from(available()).map(get_architecture)


def images(min_size: int = 1, max_size: int = 64) -> st.SearchStrategy[bytes]:
    return st.binary(min_size=min_size, max_size=max_size)


def load_addresses() -> st.SearchStrategy[int]:
    return st.integers(min_value=0, max_value=ADDRESS_LIMIT)


@st.composite
def programs(draw) -> Tuple[Architecture, bytes, int]:
    return draw(architectures()), draw(images()), draw(load_addresses())
