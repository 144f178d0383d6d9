"""Automated ordering and payment of dedicated servers through the commerce API."""
