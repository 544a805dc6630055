from alembic import op
import sqlalchemy as sa


revision = "20261001_create_household_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        "gifts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("image_url", sa.String(length=2048), nullable=True),
        sa.Column("gift_type", sa.String(length=20), nullable=True),
        sa.Column("is_santa", sa.Boolean(), nullable=True, server_default="false"),
        sa.Column("status", sa.String(length=20), nullable=True),
        sa.Column("purchaser_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("claimed_by_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("created_by_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("return_status", sa.String(length=20), nullable=True, server_default="NONE"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("price >= 0", name="ck_gifts_price_non_negative"),
    )
    op.create_index("ix_gifts_status", "gifts", ["status"])
    op.create_index("ix_gifts_purchaser_id", "gifts", ["purchaser_id"])
    op.create_index("ix_gifts_claimed_by_id", "gifts", ["claimed_by_id"])
    op.create_table(
        "gift_recipients",
        sa.Column(
            "gift_id",
            sa.String(length=36),
            sa.ForeignKey("gifts.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "profile_id",
            sa.String(length=36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_index("ix_gift_recipients_profile_id", "gift_recipients", ["profile_id"])
    op.create_table(
        "gift_tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("gift_id", sa.String(length=36), sa.ForeignKey("gifts.id", ondelete="CASCADE")),
        sa.Column("tag", sa.String(length=120), nullable=False),
    )
    op.create_index("ix_gift_tags_gift_id", "gift_tags", ["gift_id"])
    op.create_table(
        "budgets",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("gifter_id", sa.String(length=36), sa.ForeignKey("profiles.id", ondelete="CASCADE")),
        sa.Column("recipient_id", sa.String(length=36), sa.ForeignKey("profiles.id", ondelete="CASCADE")),
        sa.Column("limit_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("limit_amount >= 0", name="ck_budgets_limit_non_negative"),
    )
    op.create_index("ix_budgets_gifter_id", "budgets", ["gifter_id"])
    op.create_index("ix_budgets_recipient_id", "budgets", ["recipient_id"])
    op.create_table(
        "reconciliations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("gifter_id", sa.String(length=36)),
        sa.Column("recipient_id", sa.String(length=36)),
        sa.Column("purchaser_id", sa.String(length=36)),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("transaction_type", sa.String(length=20), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("amount >= 0", name="ck_reconciliations_amount_non_negative"),
    )
    op.create_index("ix_reconciliations_gifter_id", "reconciliations", ["gifter_id"])
    op.create_index("ix_reconciliations_recipient_id", "reconciliations", ["recipient_id"])
    op.create_index("ix_reconciliations_purchaser_id", "reconciliations", ["purchaser_id"])


def downgrade() -> None:
    op.drop_table("reconciliations")
    op.drop_table("budgets")
    op.drop_table("gift_tags")
    op.drop_table("gift_recipients")
    op.drop_table("gifts")
    op.drop_table("profiles")
