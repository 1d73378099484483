"""SQLAlchemy table definitions.

Invitations, schedules and friend access records share one document
table, keyed by collection and document id. The JSONB payload keeps the
stored document shape; the revision column backs optimistic conflict
detection. Deleted documents stay behind as tombstones (NULL data) so a
revision never goes backwards when a document is recreated.
"""

from sqlalchemy import BigInteger, Column, Index, MetaData, String, Table
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP

# Metadata object for all tables
metadata = MetaData()

documents_table = Table(
    "documents",
    metadata,
    Column("collection", String(64), primary_key=True),  # 'friend-invites', ...
    Column("id", String(255), primary_key=True),
    Column("data", JSONB, nullable=True),  # NULL for a tombstone
    Column("revision", BigInteger, nullable=False, server_default="1"),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
)

Index("idx_documents_data", documents_table.c.data, postgresql_using="gin")
