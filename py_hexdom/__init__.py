"""
Dirichlet domain analysis on hexagonal grids.
"""

__version__ = "0.1.0"
