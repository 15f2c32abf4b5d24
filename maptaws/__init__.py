"""Lookups and planning helpers for provisioning AWS test machines."""

__version__ = "1.0.0"