"""initial fleet schema: users, lookups, vehicles, sticker stock, audit log

Revision ID: 0b7e4d2a91c3
Revises:
Create Date: 2026-10-12 09:14:27.381204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0b7e4d2a91c3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LOOKUP_TABLES = ('body_types', 'vehicle_categories', 'vehicle_types', 'sticker_types')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _audit_columns() -> list:
    return [
        sa.Column('created_by', sa.UUID(), nullable=True),
        sa.Column('updated_by', sa.UUID(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.ForeignKeyConstraint(['updated_by'], ['users.id'], ),
    ]


def _id_column() -> sa.Column:
    return sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False)


def upgrade() -> None:
    op.create_table('users',
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _id_column(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table('clients',
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=20), server_default='INDIVIDUAL', nullable=False),
        sa.Column('is_default', sa.Boolean(), server_default='false', nullable=False),
        *_audit_columns(),
        *_timestamps(),
        _id_column(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_clients_name'), 'clients', ['name'], unique=False)

    for table in LOOKUP_TABLES:
        op.create_table(table,
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('is_default', sa.Boolean(), server_default='false', nullable=False),
            *_audit_columns(),
            *_timestamps(),
            _id_column(),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f(f'ix_{table}_name'), table, ['name'], unique=True)

    op.create_table('insurers',
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_default', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        *_audit_columns(),
        *_timestamps(),
        _id_column(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_insurers_name'), 'insurers', ['name'], unique=True)

    op.create_table('vehicles',
        sa.Column('registration_no', sa.String(length=50), nullable=False),
        sa.Column('make', sa.String(length=100), nullable=False),
        sa.Column('model', sa.String(length=100), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('chassis_no', sa.String(length=100), nullable=False),
        sa.Column('engine_no', sa.String(length=100), nullable=False),
        sa.Column('seating_capacity', sa.Integer(), nullable=True),
        sa.Column('cubic_capacity', sa.Integer(), nullable=True),
        sa.Column('gross_weight', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('client_id', sa.UUID(), nullable=False),
        sa.Column('body_type_id', sa.UUID(), nullable=False),
        sa.Column('category_id', sa.UUID(), nullable=False),
        sa.Column('vehicle_type_id', sa.UUID(), nullable=False),
        *_audit_columns(),
        *_timestamps(),
        _id_column(),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ),
        sa.ForeignKeyConstraint(['body_type_id'], ['body_types.id'], ),
        sa.ForeignKeyConstraint(['category_id'], ['vehicle_categories.id'], ),
        sa.ForeignKeyConstraint(['vehicle_type_id'], ['vehicle_types.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_vehicles_registration_no'), 'vehicles', ['registration_no'], unique=True)
    op.create_index(op.f('ix_vehicles_client_id'), 'vehicles', ['client_id'], unique=False)

    op.create_table('sticker_stocks',
        sa.Column('serial_number', sa.String(length=100), nullable=False),
        sa.Column('received_at', sa.Date(), nullable=False),
        sa.Column('sticker_status', sa.String(length=20), server_default='AVAILABLE', nullable=False),
        sa.Column('sticker_type_id', sa.UUID(), nullable=False),
        sa.Column('insurer_id', sa.UUID(), nullable=False),
        *_audit_columns(),
        *_timestamps(),
        _id_column(),
        sa.ForeignKeyConstraint(['sticker_type_id'], ['sticker_types.id'], ),
        sa.ForeignKeyConstraint(['insurer_id'], ['insurers.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_sticker_stocks_serial_number'), 'sticker_stocks', ['serial_number'], unique=True)
    op.create_index(op.f('ix_sticker_stocks_sticker_status'), 'sticker_stocks', ['sticker_status'], unique=False)
    op.create_index(op.f('ix_sticker_stocks_insurer_id'), 'sticker_stocks', ['insurer_id'], unique=False)

    op.create_table('audit_logs',
        sa.Column('actor_id', sa.UUID(), nullable=True),
        sa.Column('actor_email', sa.String(length=255), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('entity_type', sa.String(length=100), nullable=False),
        sa.Column('entity_id', sa.UUID(), nullable=True),
        sa.Column('before_state', sa.Text(), nullable=True),
        sa.Column('after_state', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        _id_column(),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_logs_action'), 'audit_logs', ['action'], unique=False)
    op.create_index(op.f('ix_audit_logs_entity_type'), 'audit_logs', ['entity_type'], unique=False)
    op.create_index(op.f('ix_audit_logs_entity_id'), 'audit_logs', ['entity_id'], unique=False)

    # Audit entries are append-only.
    op.execute("REVOKE UPDATE, DELETE ON audit_logs FROM PUBLIC;")
    op.execute("GRANT SELECT, INSERT ON audit_logs TO PUBLIC;")


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('sticker_stocks')
    op.drop_table('vehicles')
    op.drop_table('insurers')
    for table in reversed(LOOKUP_TABLES):
        op.drop_table(table)
    op.drop_table('clients')
    op.drop_table('users')
