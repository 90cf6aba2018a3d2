"""Utility functions for filebucket."""

from datetime import datetime, timezone


def get_iso_timestamp() -> str:
    """Get current UTC timestamp in ISO 8601 format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def iso_from_epoch(seconds: float) -> str:
    """Convert a Unix epoch (e.g. a file mtime) to an ISO 8601 UTC string."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def humanize_size(size: float) -> str:
    """Convert bytes to human-readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def format_iso_date(iso_string: str) -> str:
    """Clean up ISO 8601 timestamp for display.

    Examples:
        "2025-08-26T02:51:17.317839Z" -> "2025-08-26 02:51:17"
        "2025-08-26T02:51:17Z" -> "2025-08-26 02:51:17"
    """
    if "T" in iso_string and "." in iso_string:
        clean_date = iso_string.split(".")[0].replace("T", " ")
    elif "T" in iso_string:
        clean_date = iso_string.rstrip("Z").replace("T", " ")
    else:
        clean_date = iso_string
    return clean_date
