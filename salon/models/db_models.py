import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Time,
)
from sqlalchemy.orm import relationship

from salon.database import Base


class AppointmentStatus(str, enum.Enum):
    WAITING_FOR_CONFIRMATION = "WAITING_FOR_CONFIRMATION"
    CONFIRMED = "CONFIRMED"


employee_treatments = Table(
    "employee_treatments",
    Base.metadata,
    Column("employee_id", Integer, ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True),
    Column("treatment_id", Integer, ForeignKey("treatments.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime, default=datetime.now),
)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)

    treatments = relationship("Treatment", back_populates="category")


class Treatment(Base):
    __tablename__ = "treatments"

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False)
    price = Column(Numeric(8, 2), nullable=True)
    # nullable on purpose: booking code falls back to DEFAULT_DURATION_MINUTES
    duration_in_minutes = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)

    category = relationship("Category", back_populates="treatments")
    employees = relationship("Employee", secondary=employee_treatments, back_populates="treatments")

    def __repr__(self):
        return f"<Treatment(id={self.id}, name={self.name}, duration={self.duration_in_minutes})>"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    infix = Column(String(30), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)

    treatments = relationship("Treatment", secondary=employee_treatments, back_populates="employees")
    appointments = relationship("Appointment", back_populates="employee")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.infix, self.last_name) if part)

    def __repr__(self):
        return f"<Employee(id={self.id}, name={self.full_name})>"


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(30), nullable=True)

    appointments = relationship("Appointment", back_populates="client")

    def __repr__(self):
        return f"<Client(id={self.id}, email={self.email})>"


class OpeningHour(Base):
    """One row per weekday; `day` is the lowercase english weekday name."""

    __tablename__ = "opening_hours"

    id = Column(Integer, primary_key=True)
    day = Column(String(10), nullable=False, unique=True)
    opening_time = Column(Time, nullable=True)
    closing_time = Column(Time, nullable=True)
    closed = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    # wall-clock time in the business time zone
    start_time = Column(DateTime, nullable=False, index=True)
    finish_time = Column(DateTime, nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    treatment_id = Column(Integer, ForeignKey("treatments.id"), nullable=False)
    status = Column(
        Enum(AppointmentStatus, name="appointment_status"),
        nullable=False,
        default=AppointmentStatus.WAITING_FOR_CONFIRMATION,
    )
    confirmation_token = Column(String(64), nullable=True, unique=True)
    created_at = Column(DateTime, default=datetime.now)

    employee = relationship("Employee", back_populates="appointments")
    client = relationship("Client", back_populates="appointments")
    treatment = relationship("Treatment")

    def __repr__(self):
        return f"<Appointment(id={self.id}, employee_id={self.employee_id}, start={self.start_time})>"


class AppSetting(Base):
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True)
    setting_name = Column(String(50), nullable=False, unique=True)
    setting_value = Column(String(255), nullable=True)
