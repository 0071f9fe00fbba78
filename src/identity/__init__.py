"""Identity resolution layer.

This package maps raw emails onto the keys every store is addressed with.
"""
