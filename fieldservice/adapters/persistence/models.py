"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldservice.adapters.persistence.database import Base


class EngineerModel(Base):
    __tablename__ = "engineers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(200), unique=True, nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="engineer")
    availability: Mapped[str] = mapped_column(String(10), nullable=False, default="offline")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_checked_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_check_in: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_check_out: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    daily_first_check_in: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    daily_last_check_out: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    daily_total_work_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    skills: Mapped[list["EngineerSkillModel"]] = relationship(
        back_populates="engineer",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="EngineerSkillModel.id",
    )

    __table_args__ = (
        Index("idx_engineers_role_active", "role", "is_active"),
        Index("idx_engineers_checked_in", "is_checked_in"),
    )


class EngineerSkillModel(Base):
    __tablename__ = "engineer_skills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    engineer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("engineers.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    level: Mapped[str] = mapped_column(String(20), nullable=False, default="novice")
    years_experience: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    engineer: Mapped["EngineerModel"] = relationship(back_populates="skills")

    __table_args__ = (Index("idx_engineer_skills_engineer", "engineer_id"),)


class CustomerModel(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    city: Mapped[str | None] = mapped_column(String(200), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    service_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    machines: Mapped[list["MachineModel"]] = relationship(back_populates="customer")


class MachineModel(Base):
    __tablename__ = "machines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    model: Mapped[str] = mapped_column(String(200), nullable=False)
    serial_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    customer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("customers.id"), nullable=True
    )

    customer: Mapped["CustomerModel | None"] = relationship(back_populates="machines")


class TicketModel(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    display_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    problem: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    issue_categories: Mapped[list[str]] = mapped_column(
        ARRAY(String(100)), nullable=False, default=list
    )
    customer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("customers.id"), nullable=True
    )
    machine_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("machines.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    assigned_to: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("engineers.id"), nullable=True
    )
    assigned_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    work_performed: Mapped[str | None] = mapped_column(Text, nullable=True)
    solution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    spares_used: Mapped[list[str]] = mapped_column(
        ARRAY(String(200)), nullable=False, default=list
    )
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "(status = 'pending') = (assigned_to IS NULL)",
            name="ck_tickets_pending_unassigned",
        ),
        Index("idx_tickets_status", "status"),
        Index("idx_tickets_assigned_to", "assigned_to"),
        Index("idx_tickets_machine", "machine_id"),
    )


class DailyWorkRecordModel(Base):
    __tablename__ = "daily_work_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    engineer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("engineers.id", ondelete="CASCADE"), nullable=False
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    first_check_in: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_check_out: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    total_work_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    log: Mapped[list[dict]] = mapped_column(JSONB, nullable=False, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("engineer_id", "work_date", name="uq_daily_work_engineer_date"),
        Index("idx_daily_work_date", "work_date"),
    )


class ServiceHistoryModel(Base):
    __tablename__ = "service_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    machine_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("machines.id"), nullable=True
    )
    customer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("customers.id"), nullable=True
    )
    engineer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("engineers.id"), nullable=True
    )
    work_performed: Mapped[str | None] = mapped_column(Text, nullable=True)
    solution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    spares_used: Mapped[list[str]] = mapped_column(
        ARRAY(String(200)), nullable=False, default=list
    )
    recorded_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_service_history_machine", "machine_id"),
        Index("idx_service_history_ticket", "ticket_id"),
    )
