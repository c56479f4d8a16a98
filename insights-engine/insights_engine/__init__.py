"""
Innovation Insights Engine backend.
"""

__version__ = "1.0.0"
