"""
Database client micro-benchmark harness.
"""

__version__ = "1.0.0"
