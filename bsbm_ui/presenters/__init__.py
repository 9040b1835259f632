"""Rich presenters for CLI output."""
