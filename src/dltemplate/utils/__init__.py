"""Shared utilities for dltemplate."""
