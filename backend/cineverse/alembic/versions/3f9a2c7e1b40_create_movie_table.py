"""create movie table

Revision ID: 3f9a2c7e1b40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "3f9a2c7e1b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "movie",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("external_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("overview", sa.String(), nullable=True),
        sa.Column("release_date", sa.Date(), nullable=True),
        sa.Column("poster_url", sa.String(), nullable=True),
        sa.Column("backdrop_url", sa.String(), nullable=True),
        sa.Column("genres", sa.JSON(), nullable=False),
        sa.Column("runtime", sa.Integer(), nullable=True),
        sa.Column("vote_average", sa.Float(), nullable=True),
        sa.Column("vote_count", sa.Integer(), nullable=True),
        sa.Column("adult", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("provider", sa.String(), nullable=True),
        sa.Column("cache_expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_movie_external_id", "movie", ["external_id"], unique=True)
    op.create_index("ix_movie_cache_expires_at", "movie", ["cache_expires_at"])


def downgrade():
    op.drop_index("ix_movie_cache_expires_at", table_name="movie")
    op.drop_index("ix_movie_external_id", table_name="movie")
    op.drop_table("movie")
