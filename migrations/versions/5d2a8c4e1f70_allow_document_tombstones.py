"""allow document tombstones

Deleting a document now clears its data and bumps the revision instead of
removing the row, so revisions stay monotonic across delete and recreate.

Revision ID: 5d2a8c4e1f70
Revises: 3c1f0b7d9a2e
Create Date: 2024-09-02 09:30:00.000000

"""

from typing import Sequence, Union

from alembic import op
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "5d2a8c4e1f70"
down_revision: Union[str, Sequence[str], None] = "3c1f0b7d9a2e"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.alter_column(
        "documents", "data", existing_type=postgresql.JSONB(), nullable=True
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DELETE FROM documents WHERE data IS NULL")
    op.alter_column(
        "documents", "data", existing_type=postgresql.JSONB(), nullable=False
    )
