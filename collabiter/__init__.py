"""Context matching and dependency coordination for collabiteration workspaces."""

__version__ = "0.1.0"
