"""add invoice title and footer message

Revision ID: e47a0b93d215
Revises: 8b2d41c6e9f3
Create Date: 2025-07-18 16:02:49.530716

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'e47a0b93d215'
down_revision: Union[str, None] = '8b2d41c6e9f3'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "invoices",
        sa.Column("invoice_title", sa.String(), nullable=False, server_default="Invoice"),
    )
    op.add_column("invoices", sa.Column("footer_message", sa.Text(), nullable=True))
    # Existing rows get the same footer a new invoice starts with.
    op.execute(
        sa.text("UPDATE invoices SET footer_message = :footer WHERE footer_message IS NULL").bindparams(
            footer="Thank you for your business!"
        )
    )


def downgrade() -> None:
    op.drop_column("invoices", "footer_message")
    op.drop_column("invoices", "invoice_title")
