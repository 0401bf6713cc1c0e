"""Initial schema for scoped settings.

- users (mirrored from the main application)
- workspaces
- settings (key/value rows scoped by user_id and nullable workspace_id)

Uniqueness of (user_id, workspace_id, key) is enforced by two partial unique
indexes since NULL workspace_id values never conflict in a plain constraint.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1d9e2f7a10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_type = sa.Enum("superadmin", "company", "member", name="user_type")


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("type", user_type, nullable=False),
        sa.Column("lang", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_by", sa.UUID(), nullable=True),
        sa.Column("current_workspace_id", sa.UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["created_by"], ["users.id"], name="fk_users_created_by_users", ondelete="SET NULL"
        ),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # Workspaces
    op.create_table(
        "workspaces",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("owner_id", sa.UUID(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["owner_id"], ["users.id"], name="fk_workspaces_owner_id_users", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_workspaces_owner_id", "workspaces", ["owner_id"])

    # users.current_workspace_id closes the users <-> workspaces cycle
    op.create_foreign_key(
        "fk_users_current_workspace_id_workspaces",
        "users",
        "workspaces",
        ["current_workspace_id"],
        ["id"],
        ondelete="SET NULL",
    )

    # Settings
    op.create_table(
        "settings",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("workspace_id", sa.UUID(), nullable=True),
        sa.Column("key", sa.Text(), nullable=False),
        sa.Column("value", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_settings_user_id_users", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["workspace_id"], ["workspaces.id"], name="fk_settings_workspace_id_workspaces", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_settings_user_id", "settings", ["user_id"])
    op.create_index(
        "uq_settings_user_workspace_key",
        "settings",
        ["user_id", "workspace_id", "key"],
        unique=True,
        postgresql_where=sa.text("workspace_id IS NOT NULL"),
    )
    op.create_index(
        "uq_settings_user_key_company_wide",
        "settings",
        ["user_id", "key"],
        unique=True,
        postgresql_where=sa.text("workspace_id IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_settings_user_key_company_wide", table_name="settings")
    op.drop_index("uq_settings_user_workspace_key", table_name="settings")
    op.drop_index("ix_settings_user_id", table_name="settings")
    op.drop_table("settings")
    op.drop_constraint("fk_users_current_workspace_id_workspaces", "users", type_="foreignkey")
    op.drop_index("ix_workspaces_owner_id", table_name="workspaces")
    op.drop_table("workspaces")
    op.drop_table("users")
    user_type.drop(op.get_bind(), checkfirst=True)
