"""
Application schema shared by every tenant database.

The application tables are plain SQLAlchemy Core ``Table`` objects on their own
``MetaData`` so that schema is applied from the explicit migration list in
``saas.database.migrations`` rather than reflected from model classes.

Every table carries a nullable ``tenant_id`` column. Installations that moved
from a shared database to database-per-tenant back-fill it during seeding.

Tables:
    - post: sample tenant-scoped content
    - cadangan_type, cadangan: suggestions and their categories
    - tabung_type, tabung, kutipan: funds and collections
    - tetapan_type, tetapan: per-tenant settings
    - person, member, dependent, tag, member_tag, payment_history: khairat membership
    - kariah_member, kariah_dependent, kariah_member_assigned_type: kariah registry
"""

from sqlalchemy import (
    TIMESTAMP,
    Boolean,
    Column,
    Date,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    func,
)

app_metadata = MetaData()


def _tenant_id() -> Column:
    return Column("tenant_id", String(36), nullable=True, index=True)


def _timestamps() -> list[Column]:
    return [
        Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
        Column(
            "updated_at",
            TIMESTAMP(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
        ),
    ]


post_table = Table(
    "post",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("title", String(255), nullable=False),
    Column("description", Text),
    _tenant_id(),
    *_timestamps(),
)

# Suggestions

cadangan_type_table = Table(
    "cadangan_type",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False),
    _tenant_id(),
    *_timestamps(),
)

cadangan_table = Table(
    "cadangan",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("cadangan_type_id", Integer, ForeignKey("cadangan_type.id")),
    Column("title", String(255)),
    Column("content", Text),
    Column("is_open", Boolean, default=True),
    Column("score", Integer),
    _tenant_id(),
    *_timestamps(),
)

# Funds

tabung_type_table = Table(
    "tabung_type",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False),
    _tenant_id(),
    *_timestamps(),
)

tabung_table = Table(
    "tabung",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("tabung_type_id", Integer, ForeignKey("tabung_type.id")),
    Column("name", String(255), nullable=False),
    Column("start_date", Date),
    Column("end_date", Date),
    Column("cash_only", Boolean, default=False),
    _tenant_id(),
    *_timestamps(),
)

kutipan_table = Table(
    "kutipan",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("tabung_id", Integer, ForeignKey("tabung.id")),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("create_date", Date),
    _tenant_id(),
    *_timestamps(),
)

# Settings

tetapan_type_table = Table(
    "tetapan_type",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False),
    _tenant_id(),
    *_timestamps(),
)

tetapan_table = Table(
    "tetapan",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("tetapan_type_id", Integer, ForeignKey("tetapan_type.id")),
    Column("name", String(255), nullable=False),
    Column("value", Text),
    _tenant_id(),
    *_timestamps(),
)

# Khairat membership

person_table = Table(
    "person",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False),
    Column("ic_number", String(20)),
    Column("phone", String(30)),
    Column("email", String(255)),
    Column("address", Text),
    _tenant_id(),
    *_timestamps(),
)

member_table = Table(
    "member",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("person_id", Integer, ForeignKey("person.id")),
    Column("status", String(50)),
    Column("application_date", Date),
    _tenant_id(),
    *_timestamps(),
)

dependent_table = Table(
    "dependent",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("member_id", Integer, ForeignKey("member.id")),
    Column("person_id", Integer, ForeignKey("person.id")),
    Column("relationship", String(50)),
    _tenant_id(),
    *_timestamps(),
)

tag_table = Table(
    "tag",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=False),
    _tenant_id(),
    *_timestamps(),
)

member_tag_table = Table(
    "member_tag",
    app_metadata,
    Column("member_id", Integer, ForeignKey("member.id"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tag.id"), primary_key=True),
    _tenant_id(),
    *_timestamps(),
)

payment_history_table = Table(
    "payment_history",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("member_id", Integer, ForeignKey("member.id")),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("payment_date", Date),
    Column("reference", String(255)),
    _tenant_id(),
    *_timestamps(),
)

# Kariah registry

kariah_member_table = Table(
    "kariah_member",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("person_id", Integer, ForeignKey("person.id")),
    Column("status", String(50)),
    _tenant_id(),
    *_timestamps(),
)

kariah_dependent_table = Table(
    "kariah_dependent",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("kariah_member_id", Integer, ForeignKey("kariah_member.id")),
    Column("person_id", Integer, ForeignKey("person.id")),
    Column("relationship", String(50)),
    _tenant_id(),
    *_timestamps(),
)

kariah_member_assigned_type_table = Table(
    "kariah_member_assigned_type",
    app_metadata,
    Column("id", Integer, primary_key=True),
    Column("kariah_member_id", Integer, ForeignKey("kariah_member.id")),
    Column("type_name", String(100), nullable=False),
    _tenant_id(),
    *_timestamps(),
)
