"""
URLConnect - embedding gateway for externally hosted pages
"""

__version__ = "1.0.0"
