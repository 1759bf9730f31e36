"""Test suite for the read-through caching layer."""
