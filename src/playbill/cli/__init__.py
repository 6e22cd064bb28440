"""Playbill command-line interface."""
