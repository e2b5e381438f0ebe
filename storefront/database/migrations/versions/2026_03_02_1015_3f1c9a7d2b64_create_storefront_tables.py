"""Create products, domain mappings and subscriptions

Revision ID: 3f1c9a7d2b64
Revises:
Create Date: 2026-03-02 10:15:42.118305

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1c9a7d2b64"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("product_identifier", sa.String(), nullable=False),
        sa.Column("product_name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("hero_image_url", sa.String(), nullable=True),
        sa.Column("initial_charge_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("recurring_charge_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("recurring_interval_days", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("product_identifier"),
    )

    op.create_table(
        "domain_mappings",
        sa.Column("domain_name", sa.String(), nullable=False),
        sa.Column("product_identifier", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(
            ["product_identifier"],
            ["products.product_identifier"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("domain_name"),
    )

    op.create_table(
        "subscriptions",
        sa.Column("subscription_id", sa.UUID(), nullable=False),
        sa.Column("customer_email", sa.String(), nullable=False),
        sa.Column("product_identifier", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("next_billing_date", sa.Date(), nullable=False),
        sa.Column("primer_payment_method_token", sa.String(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("billing_interval_days", sa.Integer(), nullable=False),
        sa.Column("source_payment_id", sa.String(), nullable=True),
        sa.Column("idempotency_key", sa.String(), nullable=True),
        sa.Column("last_charge_id", sa.String(), nullable=True),
        sa.Column("last_charge_attempt_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_failure_reason", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("subscription_id"),
        sa.UniqueConstraint("idempotency_key"),
    )
    op.create_index(
        "ix_subscriptions_status_next_billing_date",
        "subscriptions",
        ["status", "next_billing_date"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_subscriptions_status_next_billing_date", table_name="subscriptions"
    )
    op.drop_table("subscriptions")
    op.drop_table("domain_mappings")
    op.drop_table("products")
