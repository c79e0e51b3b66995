"""initial schema

Revision ID: 4c1e2a9b7d10
Revises:
Create Date: 2025-10-20 09:12:31.402118

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c1e2a9b7d10'
down_revision = None
branch_labels = None
depends_on = None


def rule_parameter_columns():
    return [
        sa.Column('block_id', sa.Integer(), nullable=True),
        sa.Column('block_type', sa.String(length=30), nullable=False),
        sa.Column('block_order', sa.Integer(), nullable=False),
        sa.Column('block_name', sa.String(length=150), nullable=True),
        sa.Column('exercise_id', sa.Integer(), nullable=False),
        sa.Column('exercise_order', sa.Integer(), nullable=False),
        sa.Column('exercise_letter', sa.String(length=2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('weight_kg', sa.Float(), nullable=True),
        sa.Column('load_percentage', sa.Float(), nullable=True),
        sa.Column('sets', sa.Integer(), nullable=True),
        sa.Column('reps', sa.String(length=20), nullable=True),
        sa.Column('rest_seconds', sa.Integer(), nullable=True),
        sa.Column('tempo', sa.String(length=20), nullable=True),
        sa.Column('rir', sa.Integer(), nullable=True),
        sa.Column('first_exercise_reps', sa.String(length=20), nullable=True),
        sa.Column('second_exercise_reps', sa.String(length=20), nullable=True),
        sa.Column('rest_between_pairs', sa.Integer(), nullable=True),
        sa.Column('isolation_reps', sa.String(length=20), nullable=True),
        sa.Column('compound_reps', sa.String(length=20), nullable=True),
        sa.Column('compound_exercise_id', sa.Integer(), nullable=True),
        sa.Column('rounds', sa.Integer(), nullable=True),
        sa.Column('rest_after_seconds', sa.Integer(), nullable=True),
        sa.Column('exercise_reps', sa.String(length=20), nullable=True),
        sa.Column('drop_set_reps', sa.String(length=20), nullable=True),
        sa.Column('weight_reduction_percentage', sa.Float(), nullable=True),
        sa.Column('reps_per_cluster', sa.Integer(), nullable=True),
        sa.Column('clusters_per_set', sa.Integer(), nullable=True),
        sa.Column('intra_cluster_rest', sa.Integer(), nullable=True),
        sa.Column('rest_pause_duration', sa.Integer(), nullable=True),
        sa.Column('max_rest_pauses', sa.Integer(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('target_reps', sa.Integer(), nullable=True),
        sa.Column('emom_mode', sa.String(length=20), nullable=True),
        sa.Column('work_seconds', sa.Integer(), nullable=True),
        sa.Column('rest_after_set', sa.Integer(), nullable=True),
        sa.Column('time_cap_minutes', sa.Integer(), nullable=True),
        sa.Column('pyramid_order', sa.Integer(), nullable=True),
        sa.Column('ladder_order', sa.Integer(), nullable=True),
    ]


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("role IN ('admin','coach','client')"),
        sa.CheckConstraint("status IN ('pending','active','suspended')"),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('idx_users_email', 'users', ['email'])
    op.create_index('idx_users_role', 'users', ['role'])

    op.create_table('programs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_weeks', sa.Integer(), nullable=False),
        sa.Column('difficulty_level', sa.String(length=20), nullable=True),
        sa.Column('target_audience', sa.String(length=150), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("difficulty_level IN ('beginner','intermediate','advanced')"),
        sa.CheckConstraint('duration_weeks >= 1', name='check_program_duration_weeks'),
        sa.ForeignKeyConstraint(['coach_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_programs_coach_id', 'programs', ['coach_id'])

    op.create_table('workout_templates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('estimated_duration', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['coach_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_workout_templates_coach_id', 'workout_templates', ['coach_id'])

    op.create_table('workout_blocks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('template_id', sa.Integer(), nullable=False),
        sa.Column('block_type', sa.String(length=30), nullable=False),
        sa.Column('block_order', sa.Integer(), nullable=False),
        sa.Column('block_name', sa.String(length=150), nullable=True),
        sa.Column('block_notes', sa.Text(), nullable=True),
        sa.Column('rest_seconds', sa.Integer(), nullable=True),
        sa.Column('total_sets', sa.Integer(), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['template_id'], ['workout_templates.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_workout_blocks_template_id', 'workout_blocks', ['template_id'])

    op.create_table('workout_block_exercises',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('block_id', sa.Integer(), nullable=False),
        sa.Column('exercise_id', sa.Integer(), nullable=False),
        sa.Column('exercise_order', sa.Integer(), nullable=False),
        sa.Column('exercise_letter', sa.String(length=2), nullable=True),
        sa.Column('sets', sa.Integer(), nullable=True),
        sa.Column('reps', sa.String(length=20), nullable=True),
        sa.Column('weight_kg', sa.Float(), nullable=True),
        sa.Column('load_percentage', sa.Float(), nullable=True),
        sa.Column('rir', sa.Integer(), nullable=True),
        sa.Column('tempo', sa.String(length=20), nullable=True),
        sa.Column('rest_seconds', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('config', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['block_id'], ['workout_blocks.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_workout_block_exercises_block_id', 'workout_block_exercises', ['block_id'])

    op.create_table('program_schedule',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('program_id', sa.Integer(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('template_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='check_program_schedule_day'),
        sa.CheckConstraint('week_number >= 1', name='check_program_schedule_week'),
        sa.ForeignKeyConstraint(['program_id'], ['programs.id']),
        sa.ForeignKeyConstraint(['template_id'], ['workout_templates.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('program_id', 'week_number', 'day_of_week', name='uq_program_schedule_slot')
    )
    op.create_index('ix_program_schedule_program_id', 'program_schedule', ['program_id'])

    op.create_table('program_assignments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('program_id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('duration_weeks', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('assigned','active','paused','completed','cancelled')"),
        sa.ForeignKeyConstraint(['client_id'], ['users.id']),
        sa.ForeignKeyConstraint(['coach_id'], ['users.id']),
        sa.ForeignKeyConstraint(['program_id'], ['programs.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_program_assignments_program_id', 'program_assignments', ['program_id'])
    op.create_index('ix_program_assignments_client_id', 'program_assignments', ['client_id'])
    op.create_index(
        'uq_program_assignments_active', 'program_assignments', ['client_id', 'program_id'],
        unique=True,
        sqlite_where=sa.text("status = 'active'"),
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table('program_progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('program_assignment_id', sa.Integer(), nullable=False),
        sa.Column('current_week_index', sa.Integer(), nullable=False),
        sa.Column('current_day_index', sa.Integer(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['program_assignment_id'], ['program_assignments.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('program_assignment_id')
    )

    op.create_table('program_day_completions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('program_assignment_id', sa.Integer(), nullable=False),
        sa.Column('week_index', sa.Integer(), nullable=False),
        sa.Column('day_index', sa.Integer(), nullable=False),
        sa.Column('completed_by', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['completed_by'], ['users.id']),
        sa.ForeignKeyConstraint(['program_assignment_id'], ['program_assignments.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('program_assignment_id', 'week_index', 'day_index', name='uq_program_day_completion')
    )
    op.create_index('ix_program_day_completions_program_assignment_id', 'program_day_completions', ['program_assignment_id'])

    op.create_table('program_progression_rules',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('program_id', sa.Integer(), nullable=False),
        sa.Column('program_schedule_id', sa.Integer(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('is_placeholder', sa.Boolean(), nullable=False),
        *rule_parameter_columns(),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['program_id'], ['programs.id']),
        sa.ForeignKeyConstraint(['program_schedule_id'], ['program_schedule.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_program_progression_rules_program_id', 'program_progression_rules', ['program_id'])
    op.create_index(
        'idx_progression_rules_schedule_week', 'program_progression_rules', ['program_schedule_id', 'week_number']
    )

    op.create_table('client_program_progression_rules',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('program_assignment_id', sa.Integer(), nullable=False),
        sa.Column('program_schedule_id', sa.Integer(), nullable=True),
        sa.Column('source_rule_id', sa.Integer(), nullable=True),
        sa.Column('week_number', sa.Integer(), nullable=False),
        *rule_parameter_columns(),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['client_id'], ['users.id']),
        sa.ForeignKeyConstraint(['program_assignment_id'], ['program_assignments.id']),
        sa.ForeignKeyConstraint(['program_schedule_id'], ['program_schedule.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_client_program_progression_rules_client_id', 'client_program_progression_rules', ['client_id'])
    op.create_index(
        'ix_client_program_progression_rules_program_assignment_id',
        'client_program_progression_rules', ['program_assignment_id']
    )

    op.create_table('workout_assignments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('workout_template_id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('estimated_duration', sa.Integer(), nullable=True),
        sa.Column('assigned_date', sa.Date(), nullable=True),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_customized', sa.Boolean(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('assigned','active','in_progress','completed','skipped')"),
        sa.ForeignKeyConstraint(['client_id'], ['users.id']),
        sa.ForeignKeyConstraint(['coach_id'], ['users.id']),
        sa.ForeignKeyConstraint(['workout_template_id'], ['workout_templates.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_workout_assignments_workout_template_id', 'workout_assignments', ['workout_template_id'])
    op.create_index('ix_workout_assignments_client_id', 'workout_assignments', ['client_id'])
    op.create_index(
        'idx_workout_assignments_client_template', 'workout_assignments', ['client_id', 'workout_template_id']
    )

    # program-day tag columns arrive in the next revision
    op.create_table('workout_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('assignment_id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('in_progress','completed','cancelled')"),
        sa.ForeignKeyConstraint(['assignment_id'], ['workout_assignments.id']),
        sa.ForeignKeyConstraint(['client_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_workout_sessions_assignment_id', 'workout_sessions', ['assignment_id'])
    op.create_index('ix_workout_sessions_client_id', 'workout_sessions', ['client_id'])

    op.create_table('workout_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('workout_assignment_id', sa.Integer(), nullable=False),
        sa.Column('workout_session_id', sa.Integer(), nullable=True),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['client_id'], ['users.id']),
        sa.ForeignKeyConstraint(['workout_assignment_id'], ['workout_assignments.id']),
        sa.ForeignKeyConstraint(['workout_session_id'], ['workout_sessions.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_workout_logs_workout_assignment_id', 'workout_logs', ['workout_assignment_id'])
    op.create_index('ix_workout_logs_client_id', 'workout_logs', ['client_id'])

    op.create_table('workout_set_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('workout_log_id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('block_id', sa.Integer(), nullable=True),
        sa.Column('exercise_id', sa.Integer(), nullable=False),
        sa.Column('set_number', sa.Integer(), nullable=False),
        sa.Column('weight_kg', sa.Float(), nullable=True),
        sa.Column('reps_completed', sa.Integer(), nullable=True),
        sa.Column('rir', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['block_id'], ['workout_blocks.id']),
        sa.ForeignKeyConstraint(['client_id'], ['users.id']),
        sa.ForeignKeyConstraint(['workout_log_id'], ['workout_logs.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_workout_set_logs_workout_log_id', 'workout_set_logs', ['workout_log_id'])


def downgrade():
    op.drop_table('workout_set_logs')
    op.drop_table('workout_logs')
    op.drop_table('workout_sessions')
    op.drop_table('workout_assignments')
    op.drop_table('client_program_progression_rules')
    op.drop_table('program_progression_rules')
    op.drop_table('program_day_completions')
    op.drop_table('program_progress')
    op.drop_index('uq_program_assignments_active', table_name='program_assignments')
    op.drop_table('program_assignments')
    op.drop_table('program_schedule')
    op.drop_table('workout_block_exercises')
    op.drop_table('workout_blocks')
    op.drop_table('workout_templates')
    op.drop_table('programs')
    op.drop_table('users')
