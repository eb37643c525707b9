"""AuthFlow: multi-mode authentication flow controller for an admin panel."""

__version__ = "1.0.0"
