# tests/property/__init__.py
"""Property-based tests for batch-graphql.

Property-based testing validates invariants that must hold for ALL inputs,
not just the specific examples we think of. Row accounting is the contract
downstream tooling relies on: every input record yields exactly one result
line, carrying its row number.

Test categories:
- engine/: Row accounting, admission control state machine
- core/: Header parsing
"""
