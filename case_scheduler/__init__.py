"""
Case Scheduler: appointment negotiation and calendar fan-out for
law firms, medical providers and their clients and patients.
"""

__version__ = "0.1.0"
