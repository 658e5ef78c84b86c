# broadcast_service/core/exceptions.py
"""
Typed errors raised by the broadcast fan-out and pricing services.

Every error carries a stable ``code`` for clients and the HTTP status the
REST and GraphQL layers translate it to.
"""
from typing import Optional


class BroadcastError(Exception):
    code = "BROADCAST_ERROR"
    status_code = 400

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__doc__ or self.code)

    @property
    def message(self) -> str:
        return str(self)

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


# --- Eligibility Validator ---

class NoSellersProvided(BroadcastError):
    """At least one seller is required."""
    code = "NO_SELLERS_PROVIDED"
    status_code = 422


class TooManySellers(BroadcastError):
    """Too many sellers selected for one broadcast."""
    code = "TOO_MANY_SELLERS"
    status_code = 422


class SellerNotFound(BroadcastError):
    """One or more sellers do not exist."""
    code = "SELLER_NOT_FOUND"
    status_code = 404


class SellerInactive(BroadcastError):
    """One or more sellers are not active or not approved."""
    code = "SELLER_INACTIVE"
    status_code = 422


class SellerNotCapable(BroadcastError):
    """One or more sellers do not accept custom orders."""
    code = "SELLER_NOT_CAPABLE"
    status_code = 422


# --- Broadcast Orchestrator ---

class EmptyPayload(BroadcastError):
    """Order must have text, a voice note, or images."""
    code = "EMPTY_PAYLOAD"
    status_code = 422


class AddressNotFound(BroadcastError):
    """Delivery address not found."""
    code = "ADDRESS_NOT_FOUND"
    status_code = 404


class FanOutPersistenceFailure(BroadcastError):
    """Failed to create seller pricing requests."""
    code = "FAN_OUT_PERSISTENCE_FAILURE"
    status_code = 503


class NotFound(BroadcastError):
    """Broadcast not found."""
    code = "NOT_FOUND"
    status_code = 404


class Unauthorized(BroadcastError):
    """Not authorized for this broadcast."""
    code = "UNAUTHORIZED"
    status_code = 403


class NotActive(BroadcastError):
    """Cannot cancel a broadcast that is not active."""
    code = "NOT_ACTIVE"
    status_code = 409


# --- Pricing Engine ---

class InvalidLineItems(BroadcastError):
    """The submitted line items are not acceptable."""
    code = "INVALID_LINE_ITEMS"
    status_code = 422


class AlreadyClaimedOrPriced(BroadcastError):
    """This request is no longer pending. Refresh and check its status."""
    code = "ALREADY_CLAIMED_OR_PRICED"
    status_code = 409


class DeadlineExpired(BroadcastError):
    """The pricing deadline for this request has passed."""
    code = "DEADLINE_EXPIRED"
    status_code = 410


class ClaimLost(BroadcastError):
    """Another submission claimed this request first. Refresh before retrying."""
    code = "CLAIM_LOST"
    status_code = 409


class OrderMaterializationFailure(BroadcastError):
    """Failed to create the order for this quote."""
    code = "ORDER_MATERIALIZATION_FAILURE"
    status_code = 503


class LineItemInsertFailure(BroadcastError):
    """Failed to save the quoted line items."""
    code = "LINE_ITEM_INSERT_FAILURE"
    status_code = 503


class FinalizationFailure(BroadcastError):
    """Failed to mark the request as priced."""
    code = "FINALIZATION_FAILURE"
    status_code = 503
