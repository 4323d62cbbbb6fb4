"""Prometheus exporter that counts Auth0 tenant log events and active users."""

__version__ = "0.2.1"