"""create users and tasks

Revision ID: 7c2d4e1f9a30
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7c2d4e1f9a30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns():
	return [
		sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.text('false')),
		sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
		sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
		sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
	]


def upgrade() -> None:
	"""Upgrade schema."""
	op.create_table(
		'users',
		sa.Column('id', sa.String(), nullable=False),
		*_audit_columns(),
		sa.Column('name', sa.String(), nullable=False),
		sa.Column('role', sa.String(), nullable=False),
		sa.Column('hashed_password', sa.String(), nullable=False),
		sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
		sa.CheckConstraint("role IN ('admin', 'tech')", name='ck_users_role'),
		sa.PrimaryKeyConstraint('id')
	)
	op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

	op.create_table(
		'tasks',
		sa.Column('id', sa.String(), nullable=False),
		*_audit_columns(),
		sa.Column('area', sa.Text(), nullable=False),
		sa.Column('work_type', sa.Text(), nullable=False),
		sa.Column('description', sa.Text(), nullable=False),
		sa.Column('additional_comments', sa.Text(), nullable=False, server_default=''),
		sa.Column('technician_id', sa.String(), nullable=False),
		sa.Column('technician_name', sa.Text(), nullable=False),
		sa.Column('shift', sa.String(), nullable=False),
		sa.Column('finished_at', sa.DateTime(timezone=True), nullable=False),
		sa.Column('signature', sa.Text(), nullable=False),
		sa.Column('before_photo', sa.Text(), nullable=True),
		sa.Column('after_photo', sa.Text(), nullable=True),
		sa.ForeignKeyConstraint(['technician_id'], ['users.id']),
		sa.PrimaryKeyConstraint('id')
	)
	op.create_index(op.f('ix_tasks_id'), 'tasks', ['id'], unique=False)
	op.create_index(op.f('ix_tasks_technician_id'), 'tasks', ['technician_id'], unique=False)
	# Listing filters on the tombstone flag and sorts by finish time
	op.create_index('ix_tasks_active', 'tasks', ['is_deleted', 'finished_at'], unique=False)
	op.create_index('ix_tasks_updated', 'tasks', ['updated_at'], unique=False)


def downgrade() -> None:
	"""Downgrade schema."""
	op.drop_index('ix_tasks_updated', table_name='tasks')
	op.drop_index('ix_tasks_active', table_name='tasks')
	op.drop_index(op.f('ix_tasks_technician_id'), table_name='tasks')
	op.drop_index(op.f('ix_tasks_id'), table_name='tasks')
	op.drop_table('tasks')
	op.drop_index(op.f('ix_users_id'), table_name='users')
	op.drop_table('users')
