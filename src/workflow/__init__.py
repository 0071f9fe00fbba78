"""Onboarding workflow layer.

This package interprets and records driver onboarding progress.
It owns stage inference, policy acknowledgements, and admin resets.
"""
