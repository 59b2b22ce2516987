"""Ports (protocols and structured errors) for taming core."""
