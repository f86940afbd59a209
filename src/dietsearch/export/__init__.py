"""Output formatters for search results."""

from dietsearch.export.formatters import JSONFormatter, TableFormatter, format_result

__all__ = ["JSONFormatter", "TableFormatter", "format_result"]
