"""Adapters that connect the core gate to concrete stores and transports."""
