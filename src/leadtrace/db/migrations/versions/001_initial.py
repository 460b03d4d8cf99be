"""Initial schema - create the snapshot tables.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sites",
        sa.Column("site_id", sa.String(64), primary_key=True),
        sa.Column("data", sa.Text(), nullable=False),
    )

    op.create_table(
        "visitors",
        sa.Column("visitor_id", sa.String(64), primary_key=True),
        sa.Column("data", sa.Text(), nullable=False),
    )

    # Events keep their log order in position
    op.create_table(
        "events",
        sa.Column("position", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.String(64), nullable=False),
        sa.Column("data", sa.Text(), nullable=False),
    )

    op.create_table(
        "tracked_links",
        sa.Column("link_id", sa.String(64), primary_key=True),
        sa.Column("data", sa.Text(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("tracked_links")
    op.drop_table("events")
    op.drop_table("visitors")
    op.drop_table("sites")
