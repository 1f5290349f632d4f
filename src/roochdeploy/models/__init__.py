"""Pydantic models for Deployment manifests, bot configuration and reports."""
