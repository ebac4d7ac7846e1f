from sqlalchemy import Column, String, DateTime, Float, Text, ForeignKey
from datetime import datetime
import uuid
from leasetrack.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Project(Base):
    """A leasing engagement. Visibility is scoped by owner_user_id."""
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_user_id = Column(String(255), nullable=False, index=True)  # identity-provider user id
    title = Column(String(255), nullable=False)
    status = Column(String(20), default="Active", nullable=False)  # Active, Pending, Completed, On Hold
    company_name = Column(String(255), nullable=True)
    start_date = Column(String(20), nullable=True)  # ISO date
    desired_move_in_date = Column(String(20), nullable=True)
    expected_fee = Column(Float, nullable=True)
    broker_commission = Column(Float, nullable=True)
    commission_paid_by = Column(String(255), nullable=True)
    payment_due = Column(String(255), nullable=True)
    expected_headcount = Column(String(50), nullable=True)
    estimated_budget = Column(Float, nullable=True)
    public_share_id = Column(String(64), nullable=True, unique=True)
    deleted_at = Column(DateTime, nullable=True)  # soft delete
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Property(Base):
    """A candidate property within a project, ordered by fractional order_key."""
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=_new_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    size = Column(String(100), nullable=True)
    rent = Column(String(100), nullable=True)
    availability = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    property_type = Column(String(100), nullable=True)
    status = Column(String(20), default="new", nullable=False)  # new, active, pending, under_review, ...
    current_state = Column(String(20), default="Available", nullable=False)  # Available, Under Review, ...
    decline_reason = Column(Text, nullable=True)
    lease_type = Column(String(50), nullable=True)  # Direct Lease, Sublease, Sub-sublease
    service_type = Column(String(50), nullable=True)  # Full Service, NNN, Modified Gross
    total_sqft = Column(Float, nullable=True)
    unit_count = Column(Float, nullable=True)
    lease_rate_psf_year = Column(Float, nullable=True)
    lease_rate_psf_month = Column(Float, nullable=True)
    move_in_date = Column(String(20), nullable=True)
    tour_datetime = Column(String(40), nullable=True)
    tour_location = Column(String(255), nullable=True)
    tour_status = Column(String(20), nullable=True)  # Scheduled, Completed, Cancelled, Rescheduled
    order_key = Column(String(64), nullable=False, index=True)
    deleted_at = Column(DateTime, nullable=True)  # soft delete
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ClientRequirement(Base):
    """A client requirement line (space, budget, amenities...). No updated_at column."""
    __tablename__ = "client_requirements"

    id = Column(String(36), primary_key=True, default=_new_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    requirement_text = Column(Text, nullable=False)
    required_sqft = Column(Float, nullable=True)
    max_budget = Column(Float, nullable=True)
    preferred_lease_rate = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
