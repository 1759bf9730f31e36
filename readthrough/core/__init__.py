"""
Core Layer

Configuration, logging, exceptions, interfaces and resilience primitives
shared by every other layer.
"""
