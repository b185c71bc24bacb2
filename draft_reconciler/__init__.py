"""
draft-reconciler: turns freeform booking text into validated, auditable reservations.
"""

__version__ = "0.1.0"
