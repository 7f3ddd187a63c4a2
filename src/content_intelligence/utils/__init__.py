"""Utility helpers."""

from content_intelligence.utils.provider_calls import call_with_retry

__all__ = ["call_with_retry"]
