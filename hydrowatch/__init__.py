"""
hydrowatch
==========
Client-side monitoring layer for a hydroponic crop sensor platform.

Entry point for callers: ``hydrowatch.services.build_monitoring_facade``.
"""

__version__ = "1.0.0"
