"""
Initial schema for MedSpa

Revision ID: 000001_initial
Revises:
Create Date: 2026-10-18 09:00:00
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '000001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _base_columns(soft_delete: bool = True) -> list:
    columns = [
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]
    if soft_delete:
        columns += [
            sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        ]
    return columns


def _base_indexes(table: str, soft_delete: bool = True) -> None:
    op.create_index(f'ix_{table}_created_at', table, ['created_at'])
    op.create_index(f'ix_{table}_updated_at', table, ['updated_at'])
    if soft_delete:
        op.create_index(f'ix_{table}_deleted_at', table, ['deleted_at'])
        op.create_index(f'ix_{table}_is_deleted', table, ['is_deleted'])


def upgrade() -> None:
    # locations
    op.create_table(
        'locations',
        *_base_columns(soft_delete=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    _base_indexes('locations', soft_delete=False)

    # users
    op.create_table(
        'users',
        *_base_columns(),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('hashed_password', sa.String(length=128), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='client'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('locations.id', ondelete='SET NULL'), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
    )
    _base_indexes('users')
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_is_active', 'users', ['is_active'])
    op.create_index('ix_users_location_id', 'users', ['location_id'])
    op.create_index('ix_users_last_login_at', 'users', ['last_login_at'])
    op.create_index('ix_user_email_active', 'users', ['email', 'is_active'])
    op.create_index('ix_user_role_active', 'users', ['role', 'is_active'])

    # clients
    op.create_table(
        'clients',
        *_base_columns(),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('locations.id', ondelete='SET NULL'), nullable=True),
    )
    _base_indexes('clients')
    op.create_index('ix_clients_user_id', 'clients', ['user_id'], unique=True)
    op.create_index('ix_clients_name', 'clients', ['name'])
    op.create_index('ix_clients_email', 'clients', ['email'])
    op.create_index('ix_clients_location_id', 'clients', ['location_id'])

    # catalog
    for table, duration_nullable in (('services', False), ('packages', True)):
        op.create_table(
            table,
            *_base_columns(),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('price', sa.Numeric(10, 2), nullable=False),
            sa.Column('duration', sa.Integer(), nullable=duration_nullable),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        )
        _base_indexes(table)
        op.create_index(f'ix_{table}_name', table, ['name'])

    op.create_table(
        'products',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True, unique=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('current_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('minimum_stock', sa.Integer(), nullable=False, server_default='0'),
    )
    _base_indexes('products')
    op.create_index('ix_products_name', 'products', ['name'])
    op.create_index('ix_products_category', 'products', ['category'])

    # appointments
    op.create_table(
        'appointments',
        *_base_columns(),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('provider_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id', ondelete='SET NULL'), nullable=True),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('locations.id', ondelete='SET NULL'), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='scheduled'),
        sa.Column('notes', sa.Text(), nullable=True),
    )
    _base_indexes('appointments')
    for column in ('client_id', 'provider_id', 'service_id', 'location_id', 'start_time', 'status'):
        op.create_index(f'ix_appointments_{column}', 'appointments', [column])
    op.create_index('ix_appointment_provider_start', 'appointments', ['provider_id', 'start_time'])

    # payments
    op.create_table(
        'payments',
        *_base_columns(),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'appointment_id', sa.Integer(), sa.ForeignKey('appointments.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_method', sa.String(length=30), nullable=False, server_default='card'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('transaction_id', sa.String(length=100), nullable=True, unique=True),
    )
    _base_indexes('payments')
    for column in ('client_id', 'appointment_id', 'status'):
        op.create_index(f'ix_payments_{column}', 'payments', [column])

    # clinical
    op.create_table(
        'treatments',
        *_base_columns(),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('provider_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column(
            'appointment_id', sa.Integer(), sa.ForeignKey('appointments.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id', ondelete='SET NULL'), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('performed_at', sa.DateTime(timezone=True), nullable=True),
    )
    _base_indexes('treatments')
    for column in ('client_id', 'provider_id', 'appointment_id'):
        op.create_index(f'ix_treatments_{column}', 'treatments', [column])

    op.create_table(
        'consent_forms',
        *_base_columns(),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('signed_at', sa.DateTime(timezone=True), nullable=True),
    )
    _base_indexes('consent_forms')
    op.create_index('ix_consent_forms_client_id', 'consent_forms', ['client_id'])

    # notifications
    op.create_table(
        'notifications',
        *_base_columns(soft_delete=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    _base_indexes('notifications', soft_delete=False)
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])


def downgrade() -> None:
    for table in (
        'notifications',
        'consent_forms',
        'treatments',
        'payments',
        'appointments',
        'products',
        'packages',
        'services',
        'clients',
        'users',
        'locations',
    ):
        op.drop_table(table)
