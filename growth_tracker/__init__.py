"""Growth tracker service package."""
