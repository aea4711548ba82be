"""Resampling and PNG export."""
