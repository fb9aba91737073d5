"""Mini README: HTTP interface for Ledgerdesk.

Exports the FastAPI application factory serving the JSON API. The factory
takes the ledger store it should serve so the store's lifetime is owned by
whoever starts the app.
"""

from .web_app import create_application

__all__ = ["create_application"]
