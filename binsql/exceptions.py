"""binsql exceptions"""


class BinsqlError(Exception):
    """Base exception for all binsql errors"""
    pass


class UnsupportedDriverError(BinsqlError):
    """Unknown driver identifier"""
    pass


class ConnectionError(BinsqlError):
    """Error opening or probing a database connection"""
    pass


class QueryError(BinsqlError):
    """Error executing a query on a live connection"""
    pass


class TimeoutError(QueryError):
    """Query deadline exceeded or cancelled"""
    pass


class UsageError(BinsqlError):
    """Malformed meta-command or configuration value"""
    pass
