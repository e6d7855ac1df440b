"""Catalog cache service."""
