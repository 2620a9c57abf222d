# complaintdesk/models/complaint_models.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint, Index, Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from complaintdesk.core.db import Base
import enum


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ComplaintStatus(str, enum.Enum):
    OPEN = "open"
    UNDER_INVESTIGATION = "under_investigation"
    CLOSED = "closed"


class ComplaintType(str, enum.Enum):
    WARRANTY = "warranty"
    COMPREHENSIVE_CONTRACT = "comprehensive_contract"
    NON_COMPREHENSIVE_CONTRACT = "non_comprehensive_contract"
    OUT_OF_WARRANTY = "out_of_warranty"


class RepairType(str, enum.Enum):
    WITH_SPARE_PARTS = "with_spare_parts"
    WITHOUT_SPARE_PARTS = "without_spare_parts"


# Legal lifecycle moves. Nothing leaves CLOSED.
ALLOWED_TRANSITIONS = {
    ComplaintStatus.OPEN: {ComplaintStatus.UNDER_INVESTIGATION},
    ComplaintStatus.UNDER_INVESTIGATION: {ComplaintStatus.CLOSED},
    ComplaintStatus.CLOSED: set(),
}


class Complaint(Base):
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    engineer_id = Column(Integer, ForeignKey("engineers.id", ondelete="SET NULL"), nullable=True, index=True)
    description = Column(Text, nullable=False)
    type = Column(SAEnum(ComplaintType, values_callable=_enum_values), nullable=False)
    status = Column(
        SAEnum(ComplaintStatus, values_callable=_enum_values),
        default=ComplaintStatus.OPEN,
        nullable=False,
        index=True,
    )

    # Repair record, only filled once the complaint is closed
    repair_type = Column(SAEnum(RepairType, values_callable=_enum_values), nullable=True)
    repair_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)

    customer = relationship("Customer", back_populates="complaints", lazy="selectin")
    product = relationship("Product", back_populates="complaints", lazy="selectin")
    engineer = relationship("Engineer", back_populates="complaints", lazy="selectin")
    spare_parts_used = relationship(
        "ComplaintSparePart",
        back_populates="complaint",
        lazy="selectin",
        passive_deletes=True,
    )


class ComplaintSparePart(Base):
    """Consumption audit row: which spare part a repair used, and how many."""
    __tablename__ = "complaint_spare_parts"

    id = Column(Integer, primary_key=True, index=True)
    complaint_id = Column(Integer, ForeignKey("complaints.id", ondelete="CASCADE"), nullable=False, index=True)
    spare_part_id = Column(Integer, ForeignKey("spare_parts.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity_used = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(quantity_used > 0, name="check_quantity_used_positive"),
    )

    complaint = relationship("Complaint", back_populates="spare_parts_used")
    spare_part = relationship("SparePart", back_populates="usages", lazy="joined")


Index("ix_complaint_status_type", Complaint.status, Complaint.type)
