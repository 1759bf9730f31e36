"""
Integration tests.

These tests exercise the read-through cache against a real Redis server and
are skipped unless USE_REAL_REDIS=1.
"""
