"""Python client for the OpenStack Watcher infrastructure-optimization service."""

__version__ = "0.1.0"
