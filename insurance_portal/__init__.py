"""Insurance request portal API."""
