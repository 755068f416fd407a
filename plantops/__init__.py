"""
Plant operations compliance and ranking analytics.
"""
__version__ = "1.0.0"
