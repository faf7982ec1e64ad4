"""create students sheet

Revision ID: 0001_students
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = '0001_students'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    conn = op.get_bind()
    # create_db_and_tables() may already have created it on a dev database
    if inspect(conn).has_table('students'):
        return
    op.create_table(
        'students',
        sa.Column('row_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('father_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=False),
        sa.Column('course', sa.String(), nullable=False),
        sa.Column('semester', sa.String(), nullable=False),
        sa.Column('roll_no', sa.String(), nullable=False),
        sa.Column('created_at', sa.String(), nullable=False),
        sa.Column('updated_at', sa.String(), nullable=False),
        sa.UniqueConstraint('student_id'),
        sa.UniqueConstraint('roll_no'),
    )
    op.create_index('ix_students_student_id', 'students', ['student_id'])
    op.create_index('ix_students_roll_no', 'students', ['roll_no'])


def downgrade():
    op.drop_index('ix_students_roll_no', table_name='students')
    op.drop_index('ix_students_student_id', table_name='students')
    op.drop_table('students')
