"""Source loading and workspace scanning."""
