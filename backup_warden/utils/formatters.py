"""Formatting utilities for backup folder names and status output."""

from datetime import date, datetime
from typing import Union


DATE_FORMAT = '%Y-%m-%d'
HOUR_FORMAT = '%I %p'
HOUR_PREFIX = '@'


def format_file_size(size_bytes: int) -> str:
    """Format file size in human readable format.
    
    Args:
        size_bytes: Size in bytes.
        
    Returns:
        Human readable size string.
    """
    if size_bytes < 1024:
        return f"{size_bytes}B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes // 1024}KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes // (1024 * 1024)}MB"
    else:
        return f"{size_bytes // (1024 * 1024 * 1024)}GB"


def format_date(dt: Union[date, datetime]) -> str:
    """Format a date as a backup folder name (``YYYY-MM-DD``)."""
    return dt.strftime(DATE_FORMAT)


def format_hour_label(dt: datetime) -> str:
    """Format the hour-of-day folder name for a daily backup.
    
    The label carries the 12-hour clock hour and the AM/PM marker behind a
    leading ``@`` so that 2am and 2pm land in different folders.
    
    Args:
        dt: Moment of the backup.
        
    Returns:
        Label such as ``@02 PM``.
    """
    return f"{HOUR_PREFIX}{dt.strftime(HOUR_FORMAT)}"


def format_timestamp(dt: datetime, short: bool = False) -> str:
    """Format datetime for display.
    
    Args:
        dt: Datetime to format.
        short: If True, use short format.
        
    Returns:
        Formatted date string.
    """
    if short:
        return dt.strftime('%Y-%m-%d %H:%M')
    else:
        return dt.strftime('%Y-%m-%d %H:%M:%S')
