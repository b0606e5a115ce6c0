"""
Bookshelf helper modules independent of the HTTP layer
"""
