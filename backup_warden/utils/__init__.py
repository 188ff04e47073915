"""Utility modules for backup warden."""

from .formatters import format_file_size, format_date, format_hour_label, format_timestamp

__all__ = ["format_file_size", "format_date", "format_hour_label", "format_timestamp"]
