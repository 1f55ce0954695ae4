"""linksite: link-in-bio profile service."""

__version__ = "0.1.0"
