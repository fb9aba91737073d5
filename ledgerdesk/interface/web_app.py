"""Mini README: FastAPI JSON API for the Ledgerdesk service.

Structure:
    * Request models - Pydantic bodies using the camelCase keys clients send.
    * create_application - application factory wiring routes to a store.

The factory receives the ``LedgerStore`` it serves (tests inject a fresh one);
when none is given it builds one from settings at startup. Every error leaves
the API as ``{"error": "<message>"}``: ledger errors are converted to
``HTTPException`` inside each route and a shared handler renders them, body
validation failures become 400 and unmatched routes 404.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..configuration import LedgerdeskSettings, get_settings
from ..ledger import LedgerError, LedgerStore
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


class _Body(BaseModel):
    """Request bodies accept both camelCase aliases and field names."""

    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(_Body):
    email: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginRequest(_Body):
    email: str
    password: str


class DepositRequest(_Body):
    user_id: int = Field(..., alias="userId")
    method: str = Field(..., min_length=1)
    amount: Decimal


class TransactionReference(_Body):
    tx_id: str = Field(..., alias="txId", min_length=1)


class AccountReference(_Body):
    user_id: int = Field(..., alias="userId")


class MessageRequest(_Body):
    user_id: int = Field(..., alias="userId")
    message: str = Field(..., min_length=1)


def _bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer`` header, or ``""``."""

    if not authorization:
        return ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def create_application(
    store: Optional[LedgerStore] = None,
    settings: Optional[LedgerdeskSettings] = None,
) -> FastAPI:
    """Create the FastAPI application bound to a single ledger store."""

    settings = settings or get_settings()
    ledger = store or LedgerStore(settings)
    app = FastAPI(title="Ledgerdesk", version="0.1.0")
    app.state.ledger = ledger

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Render every HTTP error, including unmatched routes, as ``{"error": ...}``."""

        detail = exc.detail
        if exc.status_code == 404 and detail == "Not Found":
            detail = "Route not found"
        return JSONResponse({"error": detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Answer malformed input with 400; unparseable user ids are simply unknown users."""

        LOGGER.debug("Rejected input for %s: %s", request.url.path, exc.errors())
        sources = {tuple(error["loc"])[:1] for error in exc.errors()}
        if ("path",) in sources:
            return JSONResponse({"error": "User not found"}, status_code=404)
        if ("body",) not in sources:
            message = "Invalid request"
        elif request.url.path == "/api/deposit":
            message = "Invalid data"
        else:
            message = "All fields required"
        return JSONResponse({"error": message}, status_code=400)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        """Log unexpected failures and hide their details from the caller."""

        LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    @app.get("/health")
    async def health() -> JSONResponse:
        """Liveness check for process supervisors."""

        return JSONResponse({"status": "ok", "environment": settings.environment})

    @app.post("/api/register")
    def register(body: RegisterRequest) -> JSONResponse:
        """Create an account; duplicate emails are a conflict."""

        try:
            ledger.register(body.email, body.username, body.password)
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse(
            {"message": "Registration successful. Please login."}, status_code=201
        )

    @app.post("/api/login")
    def login(body: LoginRequest) -> JSONResponse:
        """Exchange credentials for a session token and the account summary."""

        try:
            session, user = ledger.authenticate(body.email, body.password)
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse(
            {
                "token": session.token,
                "expiresAt": session.expires_at.isoformat(),
                "user": user.summary(),
            }
        )

    @app.post("/api/logout")
    def logout(authorization: Optional[str] = Header(None)) -> JSONResponse:
        """Revoke the bearer token."""

        try:
            ledger.logout(_bearer_token(authorization))
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse({"message": "Logged out."})

    @app.get("/api/me")
    def current_user(authorization: Optional[str] = Header(None)) -> JSONResponse:
        """Return the account owning the bearer token."""

        try:
            user = ledger.resolve_session(_bearer_token(authorization))
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse(user.summary())

    @app.get("/api/user/{user_id}")
    def get_user(user_id: int) -> JSONResponse:
        """Return the public summary of one account."""

        try:
            user = ledger.get_user(user_id)
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse(user.summary())

    @app.get("/api/transactions/{user_id}")
    def list_transactions(user_id: int) -> JSONResponse:
        """List a user's transactions, newest first."""

        transactions = ledger.list_transactions(user_id)
        LOGGER.debug("Returning %s transactions for user %s", len(transactions), user_id)
        return JSONResponse([transaction.as_dict() for transaction in transactions])

    @app.get("/api/messages")
    def list_messages() -> JSONResponse:
        """Return the message feed joined with author usernames, newest first."""

        feed = [
            {
                "id": message.id,
                "message": message.message,
                "created_at": message.created_at.isoformat(),
                "username": username,
            }
            for message, username in ledger.list_messages()
        ]
        return JSONResponse(feed)

    @app.post("/api/deposit")
    def deposit(body: DepositRequest) -> JSONResponse:
        """Record a pending deposit and return settlement instructions."""

        try:
            result = ledger.deposit(body.user_id, body.method, body.amount)
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse(result.as_dict())

    @app.post("/api/approve-deposit")
    def approve_deposit(body: TransactionReference) -> JSONResponse:
        """Settle a deposit as successful, crediting it once."""

        try:
            ledger.approve_deposit(body.tx_id)
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse({"message": "Deposit approved!"})

    @app.post("/api/decline-deposit")
    def decline_deposit(body: TransactionReference) -> JSONResponse:
        """Settle a pending deposit as failed."""

        try:
            ledger.decline_deposit(body.tx_id)
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse({"message": "Deposit declined."})

    @app.post("/api/freeze-account")
    def freeze_account(body: AccountReference) -> JSONResponse:
        """Deactivate an account."""

        try:
            ledger.freeze(body.user_id)
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse({"message": "Account frozen."})

    @app.post("/api/unfreeze-account")
    def unfreeze_account(body: AccountReference) -> JSONResponse:
        """Reactivate an account."""

        try:
            ledger.unfreeze(body.user_id)
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse({"message": "Account unfrozen."})

    @app.post("/api/send-message")
    def send_message(body: MessageRequest) -> JSONResponse:
        """Append a message to the public feed."""

        try:
            ledger.post_message(body.user_id, body.message)
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse({"message": "Message sent successfully."})

    @app.get("/api/reconcile/{user_id}")
    def reconcile(user_id: int) -> JSONResponse:
        """Compare a user's balance with the deposits credited to it."""

        try:
            reconciliation = ledger.reconcile(user_id)
        except LedgerError as error:
            raise HTTPException(status_code=error.status_code, detail=error.message) from error
        return JSONResponse(reconciliation.as_dict())

    return app
