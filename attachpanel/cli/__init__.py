"""Command line interface for attachpanel."""
