"""Core pieces of a cluster container registry: digests, manifests, validation, history, metrics and configuration."""

__version__ = "0.1.0"