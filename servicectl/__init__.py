"""Install and uninstall supervised host services, reversing only what was created."""

__version__ = "0.1.0"
