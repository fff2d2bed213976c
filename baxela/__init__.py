"""Baxela: election incident reporting, voter registration and voting API."""

__version__ = "0.1.0"
