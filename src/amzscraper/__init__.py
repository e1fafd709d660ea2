"""
Amazon product and review scraper.

Extracts product details and multi-page customer reviews through a
PageAgent (Selenium Chrome or saved HTML) and exports them as CSV.
"""

__version__ = "1.0.0"
