"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Response models are built from domain entities through `from_domain`.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from domain.access_code import AccessCode
from domain.branding import AppSettings
from domain.client import Client
from domain.notification import Notification
from domain.prospect import LeadDetails, Prospect, RemoteProspect
from domain.sale import Sale
from domain.session import SessionState, SessionStatus
from domain.user import UserProfile, UserRole, UserStatus
from services.dashboard_service import AdminOverview, AgentStats, CommissionTotals, SaleWithClient


# ============================================================================
# Auth & Users
# ============================================================================

class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """Agent self-registration, gated by the current access code."""
    email: str
    password: str = Field(..., min_length=6)
    first_name: str
    last_name: str
    access_code: str
    phone: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "email": "agent@example.com",
                "password": "s3cret-pass",
                "first_name": "Awa",
                "last_name": "Kone",
                "access_code": "CRM-4821-2025",
            }
        }


class PasswordResetRequest(BaseModel):
    email: str


class UserResponse(BaseModel):
    user_id: str
    first_name: str
    last_name: str
    email: str
    role: UserRole
    status: UserStatus
    agent_code: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, profile: UserProfile) -> "UserResponse":
        return cls(
            user_id=profile.user_id,
            first_name=profile.first_name,
            last_name=profile.last_name,
            email=profile.email,
            role=profile.role,
            status=profile.status,
            agent_code=profile.agent_code,
            phone=profile.phone,
            created_at=profile.created_at,
        )


class LoginResponse(BaseModel):
    access_token: Optional[str]
    user: UserResponse


class MeResponse(BaseModel):
    user: UserResponse
    views: List[str]
    capabilities: List[str]
    read_only: bool


class SessionStateResponse(BaseModel):
    """One frame of the live session stream."""

    status: SessionStatus
    user_id: Optional[str] = None
    reason: Optional[str] = None
    user: Optional[UserResponse] = None

    @classmethod
    def from_domain(cls, state: SessionState) -> "SessionStateResponse":
        return cls(
            status=state.status,
            user_id=state.user_id,
            reason=state.reason,
            user=UserResponse.from_domain(state.profile) if state.profile is not None else None,
        )


class CreateUserRequest(BaseModel):
    email: str
    first_name: str
    last_name: str
    role: UserRole = UserRole.AGENT
    agent_code: Optional[str] = None
    phone: Optional[str] = None


class UpdateUserRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    agent_code: Optional[str] = None
    phone: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class UpdateOwnProfileRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class UserStatusRequest(BaseModel):
    status: UserStatus


# ============================================================================
# Access Code
# ============================================================================

class AccessCodeResponse(BaseModel):
    code: str
    expires_at: datetime
    is_active: bool

    @classmethod
    def from_domain(cls, code: AccessCode) -> "AccessCodeResponse":
        return cls(code=code.code, expires_at=code.expires_at, is_active=code.is_active)


# ============================================================================
# Prospects
# ============================================================================

class LeadDetailsModel(BaseModel):
    """Contact and interest fields of a lead."""
    full_name: str = Field(..., min_length=1)
    phone: str = ""
    country_code: str = ""
    country: str = ""
    city: str = ""
    email: str = ""
    source: str = ""
    product_of_interest: str = ""
    company: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "full_name": "Paul Durand",
                "phone": "0102030405",
                "country_code": "+225",
                "country": "Côte d'Ivoire",
                "city": "Abidjan",
                "email": "paul.durand@example.com",
                "source": "Referral",
                "product_of_interest": "Pack Enterprise",
            }
        }

    def to_domain(self) -> LeadDetails:
        return LeadDetails(**self.model_dump())

    @classmethod
    def from_domain(cls, details: LeadDetails) -> "LeadDetailsModel":
        return cls(
            full_name=details.full_name,
            phone=details.phone,
            country_code=details.country_code,
            country=details.country,
            city=details.city,
            email=details.email,
            source=details.source,
            product_of_interest=details.product_of_interest,
            company=details.company,
            notes=details.notes,
        )


class CreateProspectRequest(LeadDetailsModel):
    # Only honored for callers allowed to manage every agent's prospects.
    agent_id: Optional[str] = None

    def to_domain(self) -> LeadDetails:
        return LeadDetails(**self.model_dump(exclude={"agent_id"}))


class UpdateProspectRequest(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    country_code: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    email: Optional[str] = None
    source: Optional[str] = None
    product_of_interest: Optional[str] = None
    company: Optional[str] = None
    notes: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ProspectResponse(BaseModel):
    prospect_id: str
    agent_id: str
    details: LeadDetailsModel
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, prospect: Prospect) -> "ProspectResponse":
        return cls(
            prospect_id=prospect.prospect_id,
            agent_id=prospect.agent_id,
            details=LeadDetailsModel.from_domain(prospect.details),
            status=prospect.status.value,
            created_at=prospect.created_at,
        )


class RemoteProspectResponse(BaseModel):
    remote_prospect_id: str
    agent_id: str
    details: LeadDetailsModel
    is_verified: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, remote: RemoteProspect) -> "RemoteProspectResponse":
        return cls(
            remote_prospect_id=remote.remote_prospect_id,
            agent_id=remote.agent_id,
            details=LeadDetailsModel.from_domain(remote.details),
            is_verified=remote.is_verified,
            created_at=remote.created_at,
        )


# ============================================================================
# Clients
# ============================================================================

class ClientResponse(BaseModel):
    client_id: str
    agent_id: str
    prospect_id: str
    full_name: str
    company: Optional[str] = None
    email: str
    phone: str
    country: str
    product: str
    status: str
    deletion_reason: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, client: Client) -> "ClientResponse":
        return cls(
            client_id=client.client_id,
            agent_id=client.agent_id,
            prospect_id=client.prospect_id,
            full_name=client.full_name,
            company=client.company,
            email=client.email,
            phone=client.phone,
            country=client.country,
            product=client.product,
            status=client.status.value,
            deletion_reason=client.deletion_reason,
            created_at=client.created_at,
        )


class ConversionResponse(BaseModel):
    prospect: ProspectResponse
    client: ClientResponse


class CancelClientRequest(BaseModel):
    reason: str = Field(..., description="Why the client is being removed (sent to the agent)")


# ============================================================================
# Sales & Commissions
# ============================================================================

class ConcludeSaleRequest(BaseModel):
    """Profit and commission are always derived; they are not accepted as input."""
    client_id: str
    revenue: Decimal
    real_cost: Decimal

    class Config:
        json_schema_extra = {
            "example": {"client_id": "c0ffee00-0000-4000-8000-000000000001", "revenue": 500000, "real_cost": 350000}
        }


class CorrectSaleRequest(BaseModel):
    revenue: Decimal
    real_cost: Decimal


class SaleResponse(BaseModel):
    sale_id: str
    client_id: str
    agent_id: str
    client_name: Optional[str] = None
    amount: Decimal
    real_cost: Decimal
    profit: Decimal
    commission: Decimal
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, sale: Sale, client_name: Optional[str] = None) -> "SaleResponse":
        return cls(
            sale_id=sale.sale_id,
            client_id=sale.client_id,
            agent_id=sale.agent_id,
            client_name=client_name,
            amount=sale.amount,
            real_cost=sale.real_cost,
            profit=sale.profit,
            commission=sale.commission,
            status=sale.status.value,
            created_at=sale.created_at,
        )

    @classmethod
    def from_view(cls, view: SaleWithClient) -> "SaleResponse":
        return cls.from_domain(view.sale, client_name=view.client_name)


class CommissionTotalsResponse(BaseModel):
    total: Decimal
    pending: Decimal
    paid: Decimal

    @classmethod
    def from_domain(cls, totals: CommissionTotals) -> "CommissionTotalsResponse":
        return cls(total=totals.total, pending=totals.pending, paid=totals.paid)


# ============================================================================
# Notifications, Settings, Dashboard
# ============================================================================

class NotificationResponse(BaseModel):
    notification_id: str
    user_id: str
    title: str
    message: str
    type: str
    read: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            notification_id=notification.notification_id,
            user_id=notification.user_id,
            title=notification.title,
            message=notification.message,
            type=notification.type.value,
            read=notification.read,
            created_at=notification.created_at,
        )


class MarkReadResponse(BaseModel):
    updated: int


class AppSettingsResponse(BaseModel):
    name: str
    currency: str
    logo: Optional[str] = None

    @classmethod
    def from_domain(cls, settings: AppSettings) -> "AppSettingsResponse":
        return cls(name=settings.name, currency=settings.currency, logo=settings.logo)


class UpdateSettingsRequest(BaseModel):
    name: str
    currency: str


class UpdateLogoRequest(BaseModel):
    logo: Optional[str] = Field(None, description="Data URL or remote URL; null removes the logo")


class AgentStatsResponse(BaseModel):
    prospects: int
    pending_prospects: int
    active_clients: int
    remote_leads: int
    commissions: CommissionTotalsResponse

    @classmethod
    def from_domain(cls, stats: AgentStats) -> "AgentStatsResponse":
        return cls(
            prospects=stats.prospects,
            pending_prospects=stats.pending_prospects,
            active_clients=stats.active_clients,
            remote_leads=stats.remote_leads,
            commissions=CommissionTotalsResponse.from_domain(stats.commissions),
        )


class AdminOverviewResponse(BaseModel):
    active_agents: int
    prospects: int
    active_clients: int
    total_revenue: Decimal
    commissions: CommissionTotalsResponse

    @classmethod
    def from_domain(cls, overview: AdminOverview) -> "AdminOverviewResponse":
        return cls(
            active_agents=overview.active_agents,
            prospects=overview.prospects,
            active_clients=overview.active_clients,
            total_revenue=overview.total_revenue,
            commissions=CommissionTotalsResponse.from_domain(overview.commissions),
        )


class InsightsResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str

    class Config:
        json_schema_extra = {
            "example": {"detail": "Client not found: 123e4567-e89b-12d3-a456-426614174000"}
        }
