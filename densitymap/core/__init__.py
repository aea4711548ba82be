"""Grid, clock and aggregation."""
