"""Tekton Webhooks Extension API"""

__version__ = "0.1.0"
