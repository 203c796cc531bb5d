"""
Domain entities and request bodies.

Entities describe the documents kept in the data backends; request models
validate API input. Update requests leave every field optional and callers
apply only the fields that were set (``model_dump(exclude_unset=True)``).
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .permissions import Role


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class JobStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Subscription(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class NotificationType(str, Enum):
    REMINDER = "reminder"
    JOB = "job"
    SYSTEM = "system"


class ModelStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class EmailStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


class Entity(BaseModel):
    model_config = ConfigDict(use_enum_values=True, extra="ignore")


# === Entities ===

class User(Entity):
    id: str
    email: str
    name: str
    role: Role
    business_id: Optional[str] = None
    parent_id: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso)
    is_active: bool = True
    email_verified: bool = False
    created_by: Optional[str] = None
    hashed_password: Optional[str] = Field(None, exclude=True)


class Business(Entity):
    id: str
    name: str
    address: str = ""
    phone: str = ""
    email: str = ""
    admin_id: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)
    features: List[str] = Field(default_factory=list)
    subscription: Subscription = Subscription.BASIC
    vr_view_enabled: bool = False


class ChecklistItem(Entity):
    id: str
    text: str
    completed: bool = False


class Job(Entity):
    id: str
    title: str
    description: str = ""
    status: JobStatus = JobStatus.PENDING
    customer_id: Optional[str] = None
    employee_id: Optional[str] = None
    business_id: str
    scheduled_date: Optional[str] = None
    completed_date: Optional[str] = None
    quotation: Optional[float] = None
    invoice: Optional[float] = None
    signature: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    documents: List[str] = Field(default_factory=list)
    checklist: List[ChecklistItem] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso)


class Customer(Entity):
    id: str
    name: str
    email: str = ""
    phone: str = ""
    mobile: str = ""
    address: str = ""
    postcode: str = ""
    business_id: str
    created_at: str = Field(default_factory=utc_now_iso)


class Notification(Entity):
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.SYSTEM
    read: bool = False
    created_at: str = Field(default_factory=utc_now_iso)


class Product(Entity):
    id: str
    name: str
    category: str
    description: str = ""
    image: str = ""
    model_3d: Optional[str] = None
    ar_model: Optional[str] = None
    specifications: List[str] = Field(default_factory=list)
    price: float = 0.0
    is_active: bool = True
    created_at: str = Field(default_factory=utc_now_iso)


class ModulePermission(Entity):
    id: str
    user_id: str
    module_id: str
    can_access: bool = False
    can_grant_access: bool = False
    granted_by: Optional[str] = None
    granted_at: str = Field(default_factory=utc_now_iso)


class ConversionSettings(Entity):
    depth: int = Field(50, ge=0, le=100)
    quality: Literal["low", "medium", "high"] = "medium"
    style: Literal["realistic", "stylized", "geometric"] = "realistic"
    smoothing: bool = True
    texture_enhancement: bool = True


class ARModel(Entity):
    id: str
    name: str
    original_image: str = ""
    model_url: Optional[str] = None
    thumbnail_url: str = ""
    settings: ConversionSettings = Field(default_factory=ConversionSettings)
    status: ModelStatus = ModelStatus.PROCESSING
    progress: int = 0
    stage: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)
    file_size: float = 0.0
    business_access: List[str] = Field(default_factory=list)


class EmailRecord(Entity):
    model_config = ConfigDict(use_enum_values=True, extra="ignore", populate_by_name=True)

    id: str
    to: str
    subject: str
    text_body: str = ""
    from_address: str = Field("", alias="from", serialization_alias="from")
    sent_at: str = Field(default_factory=utc_now_iso)
    status: EmailStatus = EmailStatus.SENT
    kind: str = "general"
    error: Optional[str] = None


class ActivityLog(Entity):
    id: str
    user_id: Optional[str] = None
    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: str = Field(default_factory=utc_now_iso)


class DashboardStats(BaseModel):
    total_jobs: int = 0
    completed_jobs: int = 0
    pending_jobs: int = 0
    in_progress_jobs: int = 0
    confirmed_jobs: int = 0
    cancelled_jobs: int = 0
    total_revenue: float = 0.0
    active_employees: int = 0


def to_document(entity: BaseModel) -> Dict[str, Any]:
    """Serialise an entity for storage (keeps excluded secrets such as hashed_password)."""
    document = entity.model_dump(mode="json", by_alias=True)
    if isinstance(entity, User):
        document["hashed_password"] = entity.hashed_password
    return document


def public_user(document: Dict[str, Any]) -> Dict[str, Any]:
    """User document without credentials, safe to return to clients."""
    return User(**document).model_dump(mode="json")


# === Requests ===

class LoginRequest(BaseModel):
    email: str
    password: str


class UserCreateRequest(BaseModel):
    email: str
    password: str
    name: str
    role: Role = Role.EMPLOYEE
    business_id: Optional[str] = None
    permissions: Optional[List[str]] = None


class UserUpdateRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    role: Optional[Role] = None
    business_id: Optional[str] = None
    permissions: Optional[List[str]] = None
    is_active: Optional[bool] = None


class BusinessCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    address: str = ""
    phone: str = ""
    email: str = ""
    admin_id: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    subscription: Subscription = Subscription.BASIC
    vr_view_enabled: bool = False


class BusinessUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    admin_id: Optional[str] = None
    features: Optional[List[str]] = None
    subscription: Optional[Subscription] = None
    vr_view_enabled: Optional[bool] = None


class CustomerCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = ""
    phone: str = ""
    mobile: str = ""
    address: str = ""
    postcode: str = ""
    business_id: Optional[str] = None


class CustomerUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    postcode: Optional[str] = None


class ChecklistItemInput(BaseModel):
    text: str = Field(..., min_length=1)
    completed: bool = False


class JobCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    customer_id: Optional[str] = None
    customer: Optional[CustomerCreateRequest] = None
    employee_id: Optional[str] = None
    business_id: Optional[str] = None
    scheduled_date: Optional[str] = None
    quotation: Optional[float] = Field(None, ge=0)
    checklist: Optional[List[ChecklistItemInput]] = None


class JobUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    customer_id: Optional[str] = None
    employee_id: Optional[str] = None
    scheduled_date: Optional[str] = None
    quotation: Optional[float] = Field(None, ge=0)
    invoice: Optional[float] = Field(None, ge=0)


class JobStatusUpdateRequest(BaseModel):
    status: JobStatus


class SignatureRequest(BaseModel):
    signature: str = Field(..., min_length=1)


class AttachmentRequest(BaseModel):
    kind: Literal["image", "document"]
    reference: str = Field(..., min_length=1)


class InvoiceRequest(BaseModel):
    invoice: float = Field(..., ge=0)


class NotificationCreateRequest(BaseModel):
    user_id: str
    title: str = Field(..., min_length=1)
    message: str = ""
    type: NotificationType = NotificationType.SYSTEM


class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    description: str = ""
    image: str = ""
    model_3d: Optional[str] = None
    ar_model: Optional[str] = None
    specifications: List[str] = Field(default_factory=list)
    price: float = Field(0.0, ge=0)
    is_active: bool = True


class ProductUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image: Optional[str] = None
    model_3d: Optional[str] = None
    ar_model: Optional[str] = None
    specifications: Optional[List[str]] = None
    price: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ModuleGrantRequest(BaseModel):
    user_id: str
    can_grant: bool = False


class ConversionRequest(BaseModel):
    name: str = Field(..., min_length=1)
    image: str = Field(..., min_length=1)
    settings: ConversionSettings = Field(default_factory=ConversionSettings)
