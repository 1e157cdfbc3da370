"""create marketplace tables

Revision ID: 3c1e9a7d52b4
Revises:
Create Date: 2026-02-02 10:14:37

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3c1e9a7d52b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# 여러 테이블에서 공유하는 Enum 타입은 한 번만 생성
user_role = postgresql.ENUM('MENTEE', 'MENTOR', 'ADMIN', name='user_role', create_type=False)
approval_status = postgresql.ENUM(
    'NOT_APPLICABLE', 'PENDING', 'APPROVED', 'REJECTED', name='mentor_approval_status', create_type=False
)
auth_provider = postgresql.ENUM('LOCAL', 'GOOGLE', name='auth_provider', create_type=False)
payment_status = postgresql.ENUM('PENDING', 'SUCCEEDED', 'FAILED', 'REFUNDED', name='payment_status', create_type=False)
payout_status = postgresql.ENUM('PENDING', 'PROCESSING', 'COMPLETED', 'REJECTED', name='payout_status', create_type=False)
notification_priority = postgresql.ENUM('LOW', 'MEDIUM', 'HIGH', name='notification_priority', create_type=False)
admin_action = postgresql.ENUM(
    'APPROVE_MENTOR', 'REJECT_MENTOR', 'PAUSE_MENTOR_LOGIN', 'RESUME_MENTOR_LOGIN',
    'MARK_PAYOUT_PROCESSING', 'COMPLETE_PAYOUT', 'REJECT_PAYOUT', 'RECORD_PAYMENT',
    name='admin_action', create_type=False,
)

ENUMS = (user_role, approval_status, auth_provider, payment_status, payout_status, notification_priority, admin_action)


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('auth_provider', auth_provider, nullable=False),
        sa.Column('google_id', sa.String(length=255), nullable=True),
        sa.Column('role', user_role, nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('verification_code', sa.String(length=10), nullable=True),
        sa.Column('verification_code_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('mentor_approval_status', approval_status, nullable=True),
        sa.Column('is_login_paused', sa.Boolean(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('avatar', sa.String(length=500), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=False),
        sa.Column('country', sa.String(length=100), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('google_id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_mentor_approval_status', 'users', ['mentor_approval_status'])

    op.create_table(
        'pending_users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('verification_code', sa.String(length=10), nullable=False),
        sa.Column('verification_code_expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('mentor_approval_status', approval_status, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_pending_users_email', 'pending_users', ['email'], unique=True)
    op.create_index('ix_pending_users_expires_at', 'pending_users', ['expires_at'])

    op.create_table(
        'password_reset_codes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=4), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_password_reset_codes_email', 'password_reset_codes', ['email'], unique=True)
    op.create_index('ix_password_reset_codes_expires_at', 'password_reset_codes', ['expires_at'])

    op.create_table(
        'blacklisted_tokens',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('token', sa.String(length=1024), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('blacklisted_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_blacklisted_tokens_token', 'blacklisted_tokens', ['token'], unique=True)
    op.create_index('ix_blacklisted_tokens_user_id', 'blacklisted_tokens', ['user_id'])
    op.create_index('ix_blacklisted_tokens_expires_at', 'blacklisted_tokens', ['expires_at'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('mentor_id', sa.Uuid(), nullable=False),
        sa.Column('mentee_id', sa.Uuid(), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('mentor_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('platform_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', payment_status, nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['mentor_id'], ['users.id']),
        sa.ForeignKeyConstraint(['mentee_id'], ['users.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_mentor_id', 'payments', ['mentor_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])

    op.create_table(
        'mentor_wallets',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('mentor_id', sa.Uuid(), nullable=False),
        sa.Column('available_balance', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_withdrawn', sa.Numeric(12, 2), nullable=False),
        sa.Column('pending_earnings', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['mentor_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('mentor_id'),
    )

    op.create_table(
        'payout_methods',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('mentor_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('bank_name', sa.String(length=120), nullable=False),
        sa.Column('country', sa.String(length=100), nullable=False),
        sa.Column('account_number', sa.String(length=64), nullable=False),
        sa.Column('account_title', sa.String(length=120), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['mentor_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payout_methods_mentor_id', 'payout_methods', ['mentor_id'])

    op.create_table(
        'payout_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('mentor_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('platform_fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('net_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('method_type', sa.String(length=50), nullable=False),
        sa.Column('method_bank_name', sa.String(length=120), nullable=False),
        sa.Column('method_country', sa.String(length=100), nullable=False),
        sa.Column('method_account_number', sa.String(length=64), nullable=False),
        sa.Column('method_account_title', sa.String(length=120), nullable=False),
        sa.Column('status', payout_status, nullable=False),
        sa.Column('receipt_image', sa.String(length=500), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('processed_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['mentor_id'], ['users.id']),
        sa.ForeignKeyConstraint(['processed_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payout_requests_mentor_id', 'payout_requests', ['mentor_id'])
    op.create_index('ix_payout_requests_status', 'payout_requests', ['status'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('priority', notification_priority, nullable=False),
        sa.Column('action_url', sa.String(length=255), nullable=True),
        sa.Column('action_text', sa.String(length=100), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_user_id_created_at', 'notifications', ['user_id', 'created_at'])

    op.create_table(
        'admin_action_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('actor_id', sa.Uuid(), nullable=False),
        sa.Column('target_user_id', sa.Uuid(), nullable=True),
        sa.Column('target_payout_id', sa.Uuid(), nullable=True),
        sa.Column('action', admin_action, nullable=False),
        sa.Column('before_status', sa.String(length=30), nullable=True),
        sa.Column('after_status', sa.String(length=30), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id']),
        sa.ForeignKeyConstraint(['target_user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['target_payout_id'], ['payout_requests.id']),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('admin_action_logs')
    op.drop_index('ix_notifications_user_id_created_at', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_payout_requests_status', table_name='payout_requests')
    op.drop_index('ix_payout_requests_mentor_id', table_name='payout_requests')
    op.drop_table('payout_requests')
    op.drop_index('ix_payout_methods_mentor_id', table_name='payout_methods')
    op.drop_table('payout_methods')
    op.drop_table('mentor_wallets')
    op.drop_index('ix_payments_status', table_name='payments')
    op.drop_index('ix_payments_mentor_id', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_blacklisted_tokens_expires_at', table_name='blacklisted_tokens')
    op.drop_index('ix_blacklisted_tokens_user_id', table_name='blacklisted_tokens')
    op.drop_index('ix_blacklisted_tokens_token', table_name='blacklisted_tokens')
    op.drop_table('blacklisted_tokens')
    op.drop_index('ix_password_reset_codes_expires_at', table_name='password_reset_codes')
    op.drop_index('ix_password_reset_codes_email', table_name='password_reset_codes')
    op.drop_table('password_reset_codes')
    op.drop_index('ix_pending_users_expires_at', table_name='pending_users')
    op.drop_index('ix_pending_users_email', table_name='pending_users')
    op.drop_table('pending_users')
    op.drop_index('ix_users_mentor_approval_status', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
