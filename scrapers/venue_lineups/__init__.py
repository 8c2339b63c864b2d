"""
Venue Lineup Scraper

This package provides:
- Site-specific parsers for concert venue calendars and event pages
- Artist name cleaning and compound-lineup splitting
- Role tagging (headliner/support) and per-page artist deduplication

Target: Austin, TX venues (Mohawk, Continental Club, Parish, Stubb's, ...)
Run with: python -m scrapers.venue_lineups
"""

__version__ = "1.0.0"
