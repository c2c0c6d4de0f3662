"""
Immigration Crawler

Discovers, filters and scores Canadian immigration law and policy pages.
"""

__version__ = "1.0.0"
__description__ = "Relevance-filtered crawler for Canadian immigration law and policy pages"
