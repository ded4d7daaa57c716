"""init

Revision ID: 5c1d2e7f9a30
Revises:
Create Date: 2026-10-18 17:40:12.118203

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5c1d2e7f9a30"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "oauth_clients",
        sa.Column("client_id", sa.String(512), primary_key=True),
        sa.Column("client_secret", sa.String(512), nullable=True),
        sa.Column("callback_url", sa.String(1024), nullable=False),
        sa.Column("grants", sa.JSON, nullable=False),
        sa.Column("user_id", sa.String(512), nullable=True),
    )

    op.create_table(
        "oauth_authorization_codes",
        sa.Column("authorization_code", sa.String(512), primary_key=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("redirect_uri", sa.String(1024), nullable=False),
        sa.Column("scope", sa.String(1024), nullable=False),
        sa.Column("client_id", sa.String(512), nullable=False),
        sa.Column("user_id", sa.String(512), nullable=False),
    )
    op.create_index(
        "idx_oauth_authorization_codes_client_id",
        "oauth_authorization_codes",
        ["client_id"],
    )
    op.create_index(
        "idx_oauth_authorization_codes_user_id", "oauth_authorization_codes", ["user_id"]
    )

    op.create_table(
        "oauth_access_tokens",
        sa.Column("access_token", sa.String(512), primary_key=True),
        sa.Column(
            "access_token_expires_at", sa.DateTime(timezone=True), nullable=False
        ),
        sa.Column("scope", sa.String(1024), nullable=False),
        sa.Column("client_id", sa.String(512), nullable=False),
        sa.Column("user_id", sa.String(512), nullable=False),
    )
    op.create_index(
        "idx_oauth_access_tokens_client_id", "oauth_access_tokens", ["client_id"]
    )
    op.create_index("idx_oauth_access_tokens_user_id", "oauth_access_tokens", ["user_id"])

    # A null refresh_token_expires_at means the token never expires.
    op.create_table(
        "oauth_refresh_tokens",
        sa.Column("refresh_token", sa.String(512), primary_key=True),
        sa.Column(
            "refresh_token_expires_at", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column("scope", sa.String(1024), nullable=False),
        sa.Column("client_id", sa.String(512), nullable=False),
        sa.Column("user_id", sa.String(512), nullable=False),
    )
    op.create_index(
        "idx_oauth_refresh_tokens_client_id", "oauth_refresh_tokens", ["client_id"]
    )
    op.create_index(
        "idx_oauth_refresh_tokens_user_id", "oauth_refresh_tokens", ["user_id"]
    )


def downgrade() -> None:
    op.drop_table("oauth_refresh_tokens")
    op.drop_table("oauth_access_tokens")
    op.drop_table("oauth_authorization_codes")
    op.drop_table("oauth_clients")
