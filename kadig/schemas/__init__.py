"""Pydantic schemas for request/response validation."""

from kadig.schemas.admin import SnapshotRunResponse, UserCreate, UserListItem, UserResponse
from kadig.schemas.connection import (
    ConnectionCreate,
    ConnectionDetailsResponse,
    ConnectionResponse,
    ConnectTokenRequest,
    ConnectTokenResponse,
    SyncAllResponse,
    SyncRequest,
    SyncResultResponse,
)
from kadig.schemas.investment import (
    ApplicationCreate,
    BulkDeleteRequest,
    BulkDeleteResponse,
    InvestmentCreate,
    InvestmentListResponse,
    InvestmentResponse,
    InvestmentUpdate,
    LedgerResponse,
    PriceQuote,
    PriceUpdateRequest,
    PriceUpdateResponse,
    RedemptionCreate,
    TransferRequest,
)
from kadig.schemas.movement import MovementResponse
from kadig.schemas.notification import NotificationResponse
from kadig.schemas.portfolio import (
    HistoryPointResponse,
    PortfolioCreate,
    PortfolioResponse,
    PortfolioSummaryResponse,
    PortfolioUpdate,
)
from kadig.schemas.profile import ProfileCreate, ProfileResponse

__all__ = [
    # Admin schemas
    "UserCreate",
    "UserResponse",
    "UserListItem",
    "SnapshotRunResponse",
    # Profile
    "ProfileCreate",
    "ProfileResponse",
    # Portfolio schemas
    "PortfolioCreate",
    "PortfolioUpdate",
    "PortfolioResponse",
    "PortfolioSummaryResponse",
    "HistoryPointResponse",
    # Investment schemas
    "InvestmentCreate",
    "InvestmentUpdate",
    "InvestmentResponse",
    "InvestmentListResponse",
    "ApplicationCreate",
    "RedemptionCreate",
    "TransferRequest",
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "PriceQuote",
    "PriceUpdateRequest",
    "PriceUpdateResponse",
    "LedgerResponse",
    "MovementResponse",
    # Connections
    "ConnectTokenRequest",
    "ConnectTokenResponse",
    "ConnectionCreate",
    "ConnectionResponse",
    "ConnectionDetailsResponse",
    "SyncRequest",
    "SyncResultResponse",
    "SyncAllResponse",
    "NotificationResponse",
]
