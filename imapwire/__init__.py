"""Building blocks for the IMAP4rev1 wire protocol: sequence sets, modified UTF-7, a field writer, status responses and search criteria."""

__version__ = "0.1.0"
__all__ = ["seqset", "utf7", "write", "status", "search"]