"""
Outbound rate limiting for upstream calls.
"""

from .outbound import OutboundRateLimiter

__all__ = ["OutboundRateLimiter"]
