"""Actuator, controller switching and contact monitoring."""
