"""Process spawning and external command execution."""
