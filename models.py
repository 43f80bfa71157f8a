"""Database models for irrigation records and user accounts.

Attribute names match the record field names; nested sub-documents are
stored in JSON columns.
"""
import uuid

from fastapi.encoders import jsonable_encoder
from sqlalchemy import JSON, Boolean, Column, DateTime, Float, String, Text
from sqlalchemy.types import TypeDecorator

from database import Base


def new_id() -> str:
    return uuid.uuid4().hex


class JSONDocument(TypeDecorator):
    """JSON column that accepts datetimes inside nested documents."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return jsonable_encoder(value)


class Pump(Base):
    """Irrigation pump; each pump can supply several zones."""
    __tablename__ = "pumps"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False)
    flowRate = Column("flow_rate", Float, nullable=False)
    pressure = Column(Float, nullable=False)
    health = Column(JSONDocument, nullable=True)
    lastActive = Column("last_active", DateTime, nullable=True)
    createdAt = Column("created_at", DateTime, nullable=False)
    updatedAt = Column("updated_at", DateTime, nullable=False)


class Zone(Base):
    """Irrigation zone supplied by a pump."""
    __tablename__ = "zones"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    pumpId = Column("pump_id", String(64), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    area = Column(Float, nullable=False)  # square meters
    vegetationType = Column("vegetation_type", String(20), nullable=False)
    soilType = Column("soil_type", String(20), nullable=False)
    coordinates = Column(JSONDocument, nullable=False)  # [{"latitude": .., "longitude": ..}]
    lastWatered = Column("last_watered", DateTime, nullable=True)
    createdAt = Column("created_at", DateTime, nullable=False)
    updatedAt = Column("updated_at", DateTime, nullable=False)


class Schedule(Base):
    """When and how long a zone is irrigated."""
    __tablename__ = "schedules"

    id = Column(String(32), primary_key=True, default=new_id)
    zoneId = Column("zone_id", String(64), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    days = Column(JSONDocument, nullable=True)
    startTime = Column("start_time", String(5), nullable=False)
    duration = Column(Float, nullable=False)  # minutes
    enabled = Column(Boolean, nullable=False)
    weatherConditions = Column("weather_conditions", JSONDocument, nullable=True)
    sensorThresholds = Column("sensor_thresholds", JSONDocument, nullable=True)
    nextRun = Column("next_run", DateTime, nullable=True)
    createdAt = Column("created_at", DateTime, nullable=False)
    updatedAt = Column("updated_at", DateTime, nullable=False)


class Notification(Base):
    """System notification about an event in one of the modules."""
    __tablename__ = "notifications"

    id = Column(String(32), primary_key=True, default=new_id)
    moduleName = Column("module_name", String(100), nullable=False)
    action = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, index=True)
    payload = Column(JSONDocument, nullable=False)
    createdAt = Column("created_at", DateTime, nullable=False)
    updatedAt = Column("updated_at", DateTime, nullable=False)


class NotificationSubscriber(Base):
    """Delivery of a notification to one user over one channel."""
    __tablename__ = "notification_subscribers"

    id = Column(String(32), primary_key=True, default=new_id)
    notificationId = Column("notification_id", String(64), nullable=False, index=True)
    userId = Column("user_id", String(64), nullable=False, index=True)
    channel = Column(String(20), nullable=False)
    seen = Column(Boolean, nullable=False)
    seenAt = Column("seen_at", DateTime, nullable=True)
    sentAt = Column("sent_at", DateTime, nullable=True)
    createdAt = Column("created_at", DateTime, nullable=False)
    updatedAt = Column("updated_at", DateTime, nullable=False)


class WaterUsage(Base):
    """Water consumed by a zone over a period."""
    __tablename__ = "water_usage"

    id = Column(String(32), primary_key=True, default=new_id)
    zoneId = Column("zone_id", String(64), nullable=False, index=True)
    startDate = Column("start_date", DateTime, nullable=False)
    endDate = Column("end_date", DateTime, nullable=False)
    waterUsedLiters = Column("water_used_liters", Float, nullable=False)
    durationMinutes = Column("duration_minutes", Float, nullable=False)
    averageFlowRate = Column("average_flow_rate", Float, nullable=False)
    weatherConditions = Column("weather_conditions", JSONDocument, nullable=True)
    createdAt = Column("created_at", DateTime, nullable=False)
    updatedAt = Column("updated_at", DateTime, nullable=False)


class UserPreferences(Base):
    """Interface and notification settings, one row per user."""
    __tablename__ = "user_preferences"

    id = Column(String(32), primary_key=True, default=new_id)
    userId = Column("user_id", String(64), unique=True, nullable=False)
    language = Column(String(2), nullable=False)
    timezone = Column(String(64), nullable=False)
    emailNotifications = Column("email_notifications", JSONDocument, nullable=True)
    pushNotifications = Column("push_notifications", JSONDocument, nullable=True)
    dashboard = Column(JSONDocument, nullable=True)
    createdAt = Column("created_at", DateTime, nullable=False)
    updatedAt = Column("updated_at", DateTime, nullable=False)


class Session(Base):
    """Authentication session holding a refresh token."""
    __tablename__ = "sessions"

    id = Column(String(32), primary_key=True, default=new_id)
    userId = Column("user_id", String(64), nullable=False, index=True)
    refreshToken = Column("refresh_token", Text, unique=True, nullable=False)
    userAgent = Column("user_agent", String(500), nullable=True)
    ipAddress = Column("ip_address", String(45), nullable=True)
    expiresAt = Column("expires_at", DateTime, nullable=False)
    isValid = Column("is_valid", Boolean, nullable=False)
    createdAt = Column("created_at", DateTime, nullable=False)
    updatedAt = Column("updated_at", DateTime, nullable=False)


class User(Base):
    """User account; contact, address and password live in their own tables."""
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    contact = Column("contact_id", String(64), nullable=False)
    address = Column("address_id", String(64), unique=True, nullable=False)
    password = Column("password_id", String(64), nullable=False)
    blocked = Column(Boolean, nullable=False)
    weather = Column("weather_id", String(64), nullable=True)
    reglage = Column("reglage_id", String(64), nullable=True)
    creation_date = Column(DateTime, nullable=False)


class UserContact(Base):
    __tablename__ = "user_contacts"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False)
    firstName = Column("first_name", String(200), nullable=False)
    lastName = Column("last_name", String(200), nullable=False)
    last_update = Column(DateTime, nullable=False)


class UserAddress(Base):
    __tablename__ = "user_addresses"

    id = Column(String(32), primary_key=True, default=new_id)
    city = Column(String(200), nullable=True)
    country = Column(String(100), nullable=True)
    street = Column(String(255), nullable=True)
    codeZip = Column("code_zip", Float, nullable=True)
    last_update = Column(DateTime, nullable=False)


class UserPassword(Base):
    __tablename__ = "user_passwords"

    id = Column(String(32), primary_key=True, default=new_id)
    password = Column(String(255), nullable=False)  # bcrypt hash, never plaintext
    last_update = Column(DateTime, nullable=False)
