"""Core configuration, enums, exceptions and date utilities."""
