"""Core runtime services: configuration, logging, errors, process helpers."""
