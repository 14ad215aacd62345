"""
Coffee Tracker - Source Package

A small personal expense tracker for coffee purchases.

DESIGN PRINCIPLES:
1. The full record set is the unit of persistence
2. Storage backends are swappable behind one contract
3. Writes never silently overwrite someone else's change
4. Read failures are reported, never disguised as "no data"
"""

__version__ = "1.0.0"
__author__ = "Coffee Tracker Team"
