"""Factories for clients, backends, and repositories."""
