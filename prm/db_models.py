# prm/db_models.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from prm.config import get_config


def _engine_for(url: str):
    # in-memory SQLite: every session must share the one connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url)


ENGINE = _engine_for(get_config().database_url)
SessionLocal = sessionmaker(bind=ENGINE, expire_on_commit=False)
Base = declarative_base()


def new_id():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Person(Base):
    __tablename__ = "people"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    contact_info = Column(JSON, default=dict)
    current_location_lat = Column(Float)
    current_location_lng = Column(Float)
    location_name = Column(String(500))
    notes = Column(Text)
    created_at = Column(DateTime, default=utcnow)

    organization_links = relationship(
        "PersonOrganization",
        back_populates="person",
        cascade="all, delete-orphan",
    )
    interactions = relationship(
        "Interaction",
        back_populates="person",
        cascade="all, delete-orphan",
    )


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    website = Column(String(500))
    industry = Column(String(255))
    created_at = Column(DateTime, default=utcnow)

    person_links = relationship(
        "PersonOrganization",
        back_populates="organization",
        cascade="all, delete-orphan",
    )


class PersonOrganization(Base):
    __tablename__ = "people_organizations"

    person_id = Column(String(36), ForeignKey("people.id", ondelete="CASCADE"), primary_key=True)
    organization_id = Column(String(36), ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True)
    role = Column(String(255))

    person = relationship("Person", back_populates="organization_links")
    organization = relationship("Organization", back_populates="person_links")


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(String(64))
    date = Column(DateTime, nullable=False)
    end_date = Column(DateTime)
    location_name = Column(String(500))
    location_lat = Column(Float)
    location_lng = Column(Float)
    description = Column(Text)
    created_at = Column(DateTime, default=utcnow)

    interactions = relationship("Interaction", back_populates="event")


class Interaction(Base):
    __tablename__ = "interactions"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, index=True, nullable=False)
    person_id = Column(String(36), ForeignKey("people.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="SET NULL"), index=True)
    date = Column(DateTime, nullable=False)
    type = Column(String(64), nullable=False, default="met")
    sentiment = Column(String(64))
    notes = Column(Text)
    location_name = Column(String(500))
    location_lat = Column(Float)
    location_lng = Column(Float)
    created_at = Column(DateTime, default=utcnow)

    person = relationship("Person", back_populates="interactions")
    event = relationship("Event", back_populates="interactions")


class UserPreference(Base):
    __tablename__ = "user_preferences"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, index=True, nullable=False)
    key = Column(String(64), nullable=False)
    value = Column(JSON, default=list)
    updated_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "key", name="uq_user_preference_key"),
    )


class ApiToken(Base):
    __tablename__ = "api_tokens"

    token = Column(String(64), primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)


def init_db():
    Base.metadata.create_all(ENGINE)


init_db()
