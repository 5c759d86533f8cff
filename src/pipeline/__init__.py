"""Insight synthesis and refresh orchestration."""
