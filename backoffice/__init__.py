"""Marketplace back office service."""
