"""Applicant intake layer.

This package records intake-sourced applicants, verifies phones, and
classifies vehicles once at ingestion.
"""
