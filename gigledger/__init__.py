"""
GigLedger - Source Package

A client for freelancers tracking money and gigs against the
GigLedger backend service.

DESIGN PRINCIPLES:
1. The backend is the only source of truth
2. Validate before sending, never after
3. Every backend call returns a tagged result
4. Session state has exactly one writer
5. Views never write state after they are gone
"""

__version__ = "1.0.0"
__author__ = "GigLedger Team"
