"""Protocol integrations."""
