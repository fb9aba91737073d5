"""Mini README: Core package initializer for the Ledgerdesk service.

Ledgerdesk is a small deposit ledger: accounts, pending deposits settled by
an administrator, and a public message feed, served over a JSON API. The
``ledger`` subpackage holds the bookkeeping; ``interface`` holds the HTTP
layer. Only the logging helper is re-exported here to keep imports light.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
