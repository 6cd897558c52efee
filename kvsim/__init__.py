"""Deterministic simulation and linearizability checking for a multi-node key-value store."""

__version__ = "0.1.0"