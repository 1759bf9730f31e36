"""
Infrastructure Layer

Backend stores and Prometheus metrics export.
"""
