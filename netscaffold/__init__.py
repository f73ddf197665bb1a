"""netscaffold: Clean Architecture .NET solution scaffolding service."""

__version__ = "1.0.0"
