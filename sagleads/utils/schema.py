from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional

LeadType = Literal["pool", "hoa", "neighborhood", "other"]
ProgressStatus = Literal["processing", "completed", "error"]

CONTRACT_FIELDS = (
    "customer_name",
    "customer_address1",
    "customer_address2",
    "billing_address1",
    "billing_address2",
    "contact_email",
    "contact_mobile",
    "contact_phone",
    "site_name",
    "site_address1",
    "site_address2",
    "site_contact",
    "effective_date",
    "service_type",
)


class _Model(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContractRecord(_Model):
    customer_name: str = ""
    customer_address1: str = ""
    customer_address2: str = ""
    billing_address1: str = ""
    billing_address2: str = ""
    contact_email: str = ""
    contact_mobile: str = ""
    contact_phone: str = ""
    site_name: str = ""
    site_address1: str = ""
    site_address2: str = ""
    site_contact: str = ""
    effective_date: str = ""
    service_type: str = ""


class Location(_Model):
    lat: float
    lng: float


class LeadDraft(_Model):
    """A lead as derived from a contract, before it has an id or a location."""

    name: str
    address: str = ""
    type: LeadType = "pool"
    phone: Optional[str] = None
    email: Optional[str] = None
    contact_person: Optional[str] = None
    notes: Optional[str] = None
    contacted_date: Optional[str] = None


class Lead(_Model):
    id: str = Field(..., description="Place ID or manual-{epoch-ms}-{suffix}")
    name: str
    address: str = ""
    location: Location
    type: LeadType = "other"
    phone: Optional[str] = None
    website: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    business_status: Optional[str] = None
    distance: Optional[float] = Field(default=None, description="Miles from search center")
    notes: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    contacted: bool = False
    contacted_date: Optional[str] = None
    contact_notes: Optional[str] = None
    not_interested: bool = False
    not_interested_date: Optional[str] = None
    rejection_reason: Optional[str] = None
    is_manual: bool = False
    created_date: Optional[str] = None
    last_updated: Optional[str] = None


class Contract(ContractRecord):
    id: Optional[str] = None
    location: Location
    imported_date: str
    linked_lead_id: Optional[str] = None


class ValidationResult(_Model):
    valid: bool
    errors: List[str] = Field(default_factory=list)


class ImportProgress(_Model):
    processed: int
    total: int
    current_file: str
    status: ProgressStatus


class ImportFailure(_Model):
    file: str
    error: str


class ImportResult(_Model):
    success: bool = True
    imported_count: int = 0
    failed_count: int = 0
    errors: List[ImportFailure] = Field(default_factory=list)

    def record_success(self) -> None:
        self.imported_count += 1

    def record_failure(self, label: str, message: str) -> None:
        self.failed_count += 1
        self.success = False
        self.errors.append(ImportFailure(file=label, error=message))
