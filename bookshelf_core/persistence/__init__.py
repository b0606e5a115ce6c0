"""
Bookshelf persistence layer: database bindings, models and repositories
"""
