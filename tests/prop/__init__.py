"""
Property-based tests for the decode engine.

Hypothesis strategies live in ``strategies``; the slow lane is marked
``nightly`` and only runs when ``RETRODASM_PROP_RUN_NIGHTLY`` is set.
"""
