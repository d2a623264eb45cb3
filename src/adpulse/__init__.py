"""
AdPulse - Rate-limited, cached insights fetching for ad analytics dashboards.

Pulls ad performance rows from the Meta Graph API through a bounded
admission queue and a short-lived cache, and syncs them to downstream sinks.
"""

__version__ = "0.1.0"
__app_name__ = "adpulse"
