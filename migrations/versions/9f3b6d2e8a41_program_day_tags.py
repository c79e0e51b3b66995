"""tag workout sessions and logs with their program day

Revision ID: 9f3b6d2e8a41
Revises: 4c1e2a9b7d10
Create Date: 2025-11-03 14:47:05.118260

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '9f3b6d2e8a41'
down_revision = '4c1e2a9b7d10'
branch_labels = None
depends_on = None


def upgrade():
    for table in ('workout_sessions', 'workout_logs'):
        with op.batch_alter_table(table, schema=None) as batch_op:
            batch_op.add_column(sa.Column('program_assignment_id', sa.Integer(), nullable=True))
            batch_op.add_column(sa.Column('program_schedule_id', sa.Integer(), nullable=True))
            batch_op.create_foreign_key(
                f'fk_{table}_program_assignment', 'program_assignments', ['program_assignment_id'], ['id']
            )
            batch_op.create_foreign_key(
                f'fk_{table}_program_schedule', 'program_schedule', ['program_schedule_id'], ['id']
            )

    # existing rows have NULL tags, which never collide in a unique index
    op.create_index(
        'uq_workout_sessions_in_progress_program_day',
        'workout_sessions',
        ['client_id', 'program_assignment_id', 'program_schedule_id'],
        unique=True,
        sqlite_where=sa.text("status = 'in_progress'"),
        postgresql_where=sa.text("status = 'in_progress'"),
    )
    op.create_index(
        'idx_workout_logs_program_day',
        'workout_logs',
        ['client_id', 'program_assignment_id', 'program_schedule_id'],
    )


def downgrade():
    op.drop_index('idx_workout_logs_program_day', table_name='workout_logs')
    op.drop_index('uq_workout_sessions_in_progress_program_day', table_name='workout_sessions')
    for table in ('workout_logs', 'workout_sessions'):
        with op.batch_alter_table(table, schema=None) as batch_op:
            batch_op.drop_constraint(f'fk_{table}_program_schedule', type_='foreignkey')
            batch_op.drop_constraint(f'fk_{table}_program_assignment', type_='foreignkey')
            batch_op.drop_column('program_schedule_id')
            batch_op.drop_column('program_assignment_id')
