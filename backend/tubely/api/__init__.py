"""Tubely HTTP API package."""
