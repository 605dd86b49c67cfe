"""marketplace schema: transactions, payout requests, audit log

Revision ID: 0001_marketplace_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from __future__ import annotations

from alembic import op


revision = "0001_marketplace_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE SCHEMA IF NOT EXISTS marketplace;")

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS marketplace.transactions (
            id bigserial PRIMARY KEY,
            transaction_code varchar(32) NOT NULL UNIQUE,
            buyer_id bigint NOT NULL,
            seller_id bigint NOT NULL,
            book_id bigint NOT NULL,
            transaction_type varchar(20) NOT NULL
                CHECK (transaction_type IN ('purchase', 'rental', 'exchange')),
            quantity integer NOT NULL DEFAULT 1 CHECK (quantity >= 1),
            unit_price numeric(12,2) NOT NULL,
            total_amount numeric(12,2) NOT NULL,
            commission_amount numeric(12,2) NOT NULL DEFAULT 0,
            seller_amount numeric(12,2) NOT NULL,
            payment_status varchar(20) NOT NULL DEFAULT 'pending',
            delivery_status varchar(20) NOT NULL DEFAULT 'pending',
            payment_method varchar(50) NOT NULL DEFAULT 'mobile_money',
            payment_reference varchar(100),
            delivery_method varchar(50) NOT NULL DEFAULT 'pickup',
            rental_duration integer,
            rental_period_unit varchar(10),
            created_at timestamptz NOT NULL DEFAULT now(),
            updated_at timestamptz NOT NULL DEFAULT now(),
            CHECK (buyer_id <> seller_id),
            CHECK (total_amount = commission_amount + seller_amount)
        );
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_transactions_buyer ON marketplace.transactions (buyer_id, created_at DESC);")
    op.execute("CREATE INDEX IF NOT EXISTS ix_transactions_seller ON marketplace.transactions (seller_id, created_at DESC);")

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS marketplace.payout_requests (
            id bigserial PRIMARY KEY,
            vendor_id bigint NOT NULL,
            amount numeric(12,2) NOT NULL CHECK (amount > 0),
            payout_method varchar(30) NOT NULL DEFAULT 'paystack',
            request_status varchar(20) NOT NULL DEFAULT 'pending'
                CHECK (request_status IN ('pending', 'approved', 'rejected', 'processing', 'completed', 'failed')),
            account_details jsonb NOT NULL DEFAULT '{}'::jsonb,
            notes text,
            processed_by bigint,
            processed_at timestamptz,
            rejection_reason text,
            failure_reason text,
            transfer_code varchar(100),
            transaction_reference varchar(100),
            created_at timestamptz NOT NULL DEFAULT now(),
            updated_at timestamptz NOT NULL DEFAULT now(),
            CHECK (request_status <> 'completed' OR transfer_code IS NOT NULL)
        );
        """
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_payout_requests_vendor ON marketplace.payout_requests (vendor_id, created_at DESC);"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_payout_requests_status ON marketplace.payout_requests (request_status, created_at DESC);"
    )

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS marketplace.audit_log (
            id bigserial PRIMARY KEY,
            actor_user_id bigint,
            action text NOT NULL,
            target_id text,
            metadata jsonb NOT NULL DEFAULT '{}'::jsonb,
            request_id text,
            created_at timestamptz NOT NULL DEFAULT now()
        );
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_log_target ON marketplace.audit_log (target_id, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS marketplace.audit_log;")
    op.execute("DROP TABLE IF EXISTS marketplace.payout_requests;")
    op.execute("DROP TABLE IF EXISTS marketplace.transactions;")
