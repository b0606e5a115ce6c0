"""
Bookshelf core REST API serving authors and their books
"""

__version__ = "0.1.0"
