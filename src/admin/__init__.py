"""Admin identity layer.

This package gates operator write paths behind role-based permissions.
"""
