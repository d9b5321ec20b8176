"""
Pinrank Competitor Tracker

Internal admin backend that:
1. Registers competitor domains
2. Imports sitemaps and keyword-ranking spreadsheets
3. Reconciles rankings into a per-domain snapshot
4. Serves keyword coverage, pin and slug reports
"""

__version__ = "0.1.0"
