"""create users, audit log and rate limit tables

Revision ID: e1a2b3c4d5f6
Revises:
Create Date: 2026-09-28 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "e1a2b3c4d5f6"
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum("SUPERADMIN", "ADMIN", "MERCHANT", "CUSTOMER", name="user_role")


def _audit_table(name):
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("ip", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table(name, schema=None) as batch_op:
        batch_op.create_index(batch_op.f(f"ix_{name}_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f(f"ix_{name}_action"), ["action"], unique=False)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("failed_login_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("lockout_until", sa.DateTime(), nullable=True),
        sa.Column("is_two_factor_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("two_factor_secret", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_users_email"), ["email"], unique=True)

    _audit_table("audit_logs")
    _audit_table("admin_audit_logs")

    op.create_table(
        "ip_rate_limits",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("scope", sa.String(length=32), nullable=False),
        sa.Column("ip", sa.String(length=64), nullable=False),
        sa.Column("window_start", sa.DateTime(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("scope", "ip", name="uq_ip_rate_limits_scope_ip"),
    )
    with op.batch_alter_table("ip_rate_limits", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_ip_rate_limits_ip"), ["ip"], unique=False)


def downgrade():
    with op.batch_alter_table("ip_rate_limits", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_ip_rate_limits_ip"))
    op.drop_table("ip_rate_limits")

    for name in ("admin_audit_logs", "audit_logs"):
        with op.batch_alter_table(name, schema=None) as batch_op:
            batch_op.drop_index(batch_op.f(f"ix_{name}_action"))
            batch_op.drop_index(batch_op.f(f"ix_{name}_user_id"))
        op.drop_table(name)

    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_users_email"))
    op.drop_table("users")
    user_role.drop(op.get_bind(), checkfirst=True)
