"""Mobile app accounts for field technicians and office roles."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base


class MobileUser(Base):
    __tablename__ = "mobile_users"
    __table_args__ = (
        # NULL labels never collide, so only linked accounts are constrained
        UniqueConstraint("company_id", "sales_rep", name="uq_mobile_users_company_sales_rep"),
        UniqueConstraint("company_id", "canvasser", name="uq_mobile_users_company_canvasser"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String(30), nullable=False, default="sales_rep")
    sales_rep = Column(String(100), nullable=True)
    canvasser = Column(String(100), nullable=True)
    office_manager = Column(String(100), nullable=True)
    project_manager = Column(String(100), nullable=True)
    company_id = Column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    company = relationship("Company", back_populates="mobile_users")
