"""
ServicePlan Pro branding service.

Extracts a five-color widget scheme from a company logo.
"""

__version__ = "1.0.0"
