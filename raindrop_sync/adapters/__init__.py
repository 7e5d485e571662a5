"""Adapters for external systems: the Raindrop.io REST API and local bookmark stores."""
