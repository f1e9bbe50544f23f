"""
Complaint lifecycle backend: citizens file complaints against entities,
employees claim and resolve them.
"""

__version__ = "1.0.0"
