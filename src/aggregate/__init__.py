"""Aggregation layer.

This package joins per-applicant records across stores into merged
views, report snapshots and dashboard statistics.
"""
