"""Simulated services for hardware-free runs."""
