"""One final quiz per course, one quiz per module; certificate PDF url

Revision ID: 7c4e2b9d1a55
Revises: 3f9a1c2d7b10
Create Date: 2026-10-17 15:40:02.901733

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = '7c4e2b9d1a55'
down_revision = '3f9a1c2d7b10'
branch_labels = None
depends_on = None


def upgrade():
    inspector = inspect(op.get_bind())

    quiz_indexes = {index['name'] for index in inspector.get_indexes('quizzes')}
    if 'uq_quizzes_course_final' not in quiz_indexes:
        op.create_index(
            'uq_quizzes_course_final', 'quizzes', ['course_id'], unique=True,
            postgresql_where=sa.text('module_id IS NULL'),
            sqlite_where=sa.text('module_id IS NULL'),
        )
    if 'uq_quizzes_module' not in quiz_indexes:
        op.create_index('uq_quizzes_module', 'quizzes', ['module_id'], unique=True)

    columns = [col['name'] for col in inspector.get_columns('certificates_issued')]
    if 'pdf_url' not in columns:
        op.add_column('certificates_issued', sa.Column('pdf_url', sa.String(length=1024), nullable=True))


def downgrade():
    op.drop_column('certificates_issued', 'pdf_url')
    op.drop_index('uq_quizzes_module', table_name='quizzes')
    op.drop_index('uq_quizzes_course_final', table_name='quizzes')
