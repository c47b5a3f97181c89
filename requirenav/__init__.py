"""Go-to-definition for RequireJS (AMD) modules."""

__version__ = "0.1.0"
