"""HTTP API for fundbadge."""
