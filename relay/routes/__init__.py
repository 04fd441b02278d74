"""Relay API routes."""
