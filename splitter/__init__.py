"""
Capped primary / weighted secondary token splitter.

A primary recipient accumulates each asset up to a per-asset cap; whatever a
deposit carries past the cap is shared by a fixed table of secondary
recipients, weighted in basis points.
"""

__version__ = "0.2.0"
