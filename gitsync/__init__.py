"""gitsync - synchronize a workflow platform workspace with a git repository."""

__version__ = "0.3.0"
