"""Deployment and instance baseline

Revision ID: 20261019_01
Revises: None
Create Date: 2026-10-19
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "instance",
        sa.Column("instance_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("instance_slug", sa.Text(), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("instance_slug", name="uq_instance_slug"),
    )

    op.create_table(
        "deployment",
        sa.Column("deployment_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("instance_id", sa.Integer(), sa.ForeignKey("instance.instance_id"), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'created'")),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("instance_id", name="uq_deployment_instance_id"),
        sa.CheckConstraint(
            "status in ('created', 'pending', 'running', 'stopping', 'stopped', 'failed')",
            name="ck_deployment_status",
        ),
    )
    op.create_index("ix_deployment_status", "deployment", ["status"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_deployment_status", table_name="deployment")
    op.drop_table("deployment")
    op.drop_table("instance")
