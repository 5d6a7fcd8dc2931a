"""Visibility resolution and results aggregation for feedback sessions."""
