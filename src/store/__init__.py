"""Storage layer.

This package persists per-applicant documents in named collections.
It powers intake, workflow writes, and aggregation reads for the SDK.
"""
