"""Clone GitHub repositories as a GitHub App installation."""

__version__ = "0.1.0"
