"""
Daily collection for the Data Tapestry.

Fetches one trending-repositories snapshot and reduces it to a dated slice:
  - data/daily/YYYY-MM-DD.json (one per calendar day, overwritten on re-run)
  - data/latest.json (byte-identical copy of the newest slice)
"""

__version__ = "0.1.0"
