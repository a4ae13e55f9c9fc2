"""SQLAlchemy models for the tideledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Account in the chart of accounts, keyed by its normalized path."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    path = Column(String, unique=True, nullable=False)
    parent_path = Column(String, nullable=True, index=True)
    description = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Entry(Base):
    """Ledger entry model."""

    __tablename__ = "entries"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False, index=True)
    description = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    status = Column(String, nullable=False, default="draft")
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    posted_at = Column(DateTime, nullable=True)
    posted_by = Column(String, nullable=True)
    voided_at = Column(DateTime, nullable=True)
    voided_by = Column(String, nullable=True)
    void_reason = Column(String, nullable=True)
    reversal_of = Column(Integer, ForeignKey("entries.id"), nullable=True)

    # Relationships
    positions = relationship(
        "Position",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="Position.ordinal",
    )


class Position(Base):
    """Position model; amounts are stored as integer minor units."""

    __tablename__ = "positions"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("entries.id"), nullable=False)
    ordinal = Column(Integer, nullable=False)
    account_path = Column(String, ForeignKey("accounts.path"), nullable=False, index=True)
    amount_minor = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False)
    description = Column(String, nullable=True)
    tax_relevant = Column(Boolean, default=False, nullable=False)

    __table_args__ = (UniqueConstraint("entry_id", "ordinal", name="uq_entry_ordinal"),)

    # Relationships
    entry = relationship("Entry", back_populates="positions")


class Template(Base):
    """Template version model."""

    __tablename__ = "templates"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    version = Column(Integer, nullable=False)
    description = Column(String, nullable=True)
    default_total_minor = Column(BigInteger, nullable=True)
    default_total_currency = Column(String(3), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # One row per name and version
    __table_args__ = (UniqueConstraint("name", "version", name="uq_template_name_version"),)

    # Relationships
    lines = relationship(
        "TemplateLine",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="TemplateLine.ordinal",
    )


class TemplateLine(Base):
    """Template line model; shares are kept as exact decimal text."""

    __tablename__ = "template_lines"

    id = Column(Integer, primary_key=True)
    template_id = Column(Integer, ForeignKey("templates.id"), nullable=False)
    ordinal = Column(Integer, nullable=False)
    account_path = Column(String, nullable=False)
    amount_type = Column(String, nullable=False)
    amount_minor = Column(BigInteger, nullable=True)
    currency = Column(String(3), nullable=True)
    share = Column(String, nullable=True)
    description = Column(String, nullable=True)
    tax_relevant = Column(Boolean, default=False, nullable=False)

    __table_args__ = (UniqueConstraint("template_id", "ordinal", name="uq_template_line_ordinal"),)

    # Relationships
    template = relationship("Template", back_populates="lines")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
