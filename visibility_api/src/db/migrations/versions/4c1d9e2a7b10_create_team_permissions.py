"""Create the team_permissions edge table.

Tables:
- team_permissions (subject_team_id, object_team_id) composite primary key,
  secondary index on object_team_id for "who can see this team" lookups.

Team ids are owned by the team-management service; no foreign key is declared
so edges referencing deleted teams are tolerated.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "4c1d9e2a7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Renders now() on PostgreSQL and CURRENT_TIMESTAMP on SQLite.
NOW = sa.func.now()


def upgrade() -> None:
    op.create_table(
        "team_permissions",
        sa.Column("subject_team_id", sa.Integer(), nullable=False, autoincrement=False),
        sa.Column("object_team_id", sa.Integer(), nullable=False, autoincrement=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("subject_team_id", "object_team_id", name="pk_team_permissions"),
    )
    op.create_index(
        "ix_team_permissions_object_team_id", "team_permissions", ["object_team_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_team_permissions_object_team_id", table_name="team_permissions")
    op.drop_table("team_permissions")
