"""Kubernetes provider-config credentials, REST config building and server-side-apply caches."""

__version__ = "0.1.0"