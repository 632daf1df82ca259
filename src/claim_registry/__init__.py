"""Claim registry service.

Registers users, issues claim template links from an external consent
service and records the one-time completion of that claim.
"""

__version__ = "0.1.0"
