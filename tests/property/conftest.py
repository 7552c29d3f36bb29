# tests/property/conftest.py
"""Shared Hypothesis strategies for property-based tests.

Strategy Categories:
- JSON-safe values (finite numbers, text, nested containers)
- Variable sets (one input record)
- Input lines (valid records mixed with malformed external data)

Usage:
    from tests.property.conftest import input_lines

    @given(lines=input_lines)
    def test_rows_are_contiguous(lines: list[str]) -> None:
        ...
"""

from __future__ import annotations

import json
from typing import Any

from hypothesis import strategies as st

# =============================================================================
# JSON-safe values
# =============================================================================

json_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2**53), max_value=2**53),
    st.floats(allow_nan=False, allow_infinity=False),
    st.text(max_size=20),
)

json_values: st.SearchStrategy[Any] = st.recursive(
    json_scalars,
    lambda children: st.one_of(
        st.lists(children, max_size=4),
        st.dictionaries(st.text(max_size=8), children, max_size=4),
    ),
    max_leaves=10,
)

variable_sets = st.dictionaries(st.text(min_size=1, max_size=10), json_values, max_size=5)

# =============================================================================
# Input lines
# =============================================================================

valid_lines = variable_sets.map(json.dumps)

# Lines the source must report as malformed: broken JSON or a non-object value
malformed_lines = st.one_of(
    st.sampled_from(["{", "not json", '{"a":}', "[1, 2]", "42", '"text"', "null", '{"x": NaN}']),
    st.lists(json_scalars, max_size=3).map(json.dumps),
)

input_lines = st.lists(
    st.one_of(valid_lines, valid_lines, malformed_lines),
    max_size=40,
)
