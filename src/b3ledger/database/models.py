"""SQLAlchemy models for b3ledger database.

No ORM relationships are declared: associations are plain foreign key
columns and back-lookups are done with queries.
"""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    UniqueConstraint,
    create_engine,
    text,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """User model. The id is supplied by the identity provider."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class Portfolio(Base):
    """Portfolio model, one per user."""

    __tablename__ = "portfolios"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class Institution(Base):
    """Institution model, unique by name."""

    __tablename__ = "institutions"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class UserInstitution(Base):
    """Association between a user and an institution."""

    __tablename__ = "user_institutions"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "institution_id", name="uq_user_institution"),
    )


class Operation(Base):
    """Operation model: one imported or registered statement row."""

    __tablename__ = "operations"

    id = Column(Integer, primary_key=True)
    direction = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    movement = Column(String, nullable=True)
    product = Column(String, nullable=True)
    institution = Column(String, nullable=True)
    quantity = Column(Numeric(20, 8), nullable=False)
    unit_price = Column(Numeric(18, 2), nullable=False)
    value = Column(Numeric(18, 2), nullable=False)
    duplicate = Column(Boolean, default=False, nullable=False)
    dimensioned = Column(Boolean, default=False, nullable=False)
    original_id = Column(String, nullable=True)
    deleted = Column(Boolean, default=False, nullable=False)
    user_id = Column(Integer, nullable=False)
    imported_at = Column(DateTime, default=_now, nullable=False)

    # Duplicates share the key of their original; only one original per key
    __table_args__ = (
        Index(
            "uq_operations_original_user",
            "original_id",
            "user_id",
            unique=True,
            sqlite_where=text("duplicate = 0"),
            postgresql_where=text("duplicate = false"),
        ),
        Index("ix_operations_pending", "dimensioned", "duplicate", "deleted", "id"),
    )


class FinancialAsset(Base):
    """Financial asset model, unique by portfolio and ticker."""

    __tablename__ = "financial_assets"

    id = Column(Integer, primary_key=True)
    portfolio_id = Column(Integer, ForeignKey("portfolios.id"), nullable=False)
    ticker = Column(String, nullable=False)
    product_name = Column(String, nullable=True)
    fixed_income = Column(Boolean, default=False, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("portfolio_id", "ticker", name="uq_portfolio_ticker"),
    )


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    operation_id = Column(Integer, ForeignKey("operations.id"), nullable=False)
    portfolio_id = Column(Integer, ForeignKey("portfolios.id"), nullable=False)
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=False)
    asset_id = Column(Integer, ForeignKey("financial_assets.id"), nullable=True)
    date = Column(Date, nullable=False)
    direction = Column(String, nullable=True)
    quantity = Column(Numeric(20, 8), nullable=False)
    unit_price = Column(Numeric(18, 2), nullable=False)
    total_value = Column(Numeric(18, 2), nullable=False)
    transaction_type = Column(String, nullable=False)
    movement_type = Column(String, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    # An operation is consolidated into at most one transaction
    __table_args__ = (UniqueConstraint("operation_id", name="uq_transaction_operation"),)


class AssetLot(Base):
    """Asset lot model: quantity and price an asset moved by in one transaction."""

    __tablename__ = "asset_lots"

    id = Column(Integer, primary_key=True)
    asset_id = Column(Integer, ForeignKey("financial_assets.id"), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), unique=True, nullable=False)
    purchase_date = Column(Date, nullable=False)
    quantity = Column(Numeric(20, 8), nullable=False)
    unit_price = Column(Numeric(18, 2), nullable=False)
    total = Column(Numeric(18, 2), nullable=False)
    asset_type = Column(String, nullable=False)
    transaction_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class JobExecution(Base):
    """Batch job execution registry."""

    __tablename__ = "job_executions"

    id = Column(Integer, primary_key=True)
    job_name = Column(String, nullable=False)
    job_key = Column(String, nullable=False)
    status = Column(String, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)
    read_count = Column(Integer, default=0, nullable=False)
    write_count = Column(Integer, default=0, nullable=False)
    skip_count = Column(Integer, default=0, nullable=False)
    chunk_count = Column(Integer, default=0, nullable=False)
    exit_message = Column(String, nullable=True)

    __table_args__ = (Index("ix_job_executions_name_key", "job_name", "job_key"),)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
