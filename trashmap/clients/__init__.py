"""Blob storage clients."""
