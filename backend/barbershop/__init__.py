"""Barbershop booking engine: slot allocation, conflict checks and booking lifecycle."""

__version__ = "0.3.0"
