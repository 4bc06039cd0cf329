"""Initial schema: profiles, catalog, quizzes and certificates

Revision ID: 3f9a1c2d7b10
Revises:
Create Date: 2026-10-17 09:12:44.318270

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = '3f9a1c2d7b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    inspector = inspect(op.get_bind())
    tables = inspector.get_table_names()

    if 'profiles' not in tables:
        op.create_table('profiles',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=True),
            sa.Column('first_name', sa.String(length=120), nullable=True),
            sa.Column('last_name', sa.String(length=120), nullable=True),
            sa.Column('role', sa.String(length=40), nullable=False, server_default='student'),
            sa.Column('status', sa.String(length=40), nullable=False, server_default='pending'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_profiles_email', 'profiles', ['email'], unique=True)
        op.create_index('ix_profiles_role', 'profiles', ['role'], unique=False)

    if 'courses' not in tables:
        op.create_table('courses',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('title', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('image_url', sa.String(length=1024), nullable=True),
            sa.Column('category', sa.String(length=120), nullable=True),
            sa.Column('level', sa.String(length=60), nullable=True),
            sa.Column('tag', sa.String(length=120), nullable=True),
            sa.Column('archived', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('instructor_id', sa.String(length=36), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['instructor_id'], ['profiles.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_courses_archived', 'courses', ['archived'], unique=False)
        op.create_index('ix_courses_instructor_id', 'courses', ['instructor_id'], unique=False)
        op.create_index('ix_courses_created_at', 'courses', ['created_at'], unique=False)

    if 'modules' not in tables:
        op.create_table('modules',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('course_id', sa.String(length=36), nullable=False),
            sa.Column('title', sa.String(length=255), nullable=False),
            sa.Column('ordering', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_modules_course_id', 'modules', ['course_id'], unique=False)
        op.create_index('ix_modules_course_ordering', 'modules', ['course_id', 'ordering'], unique=False)

    if 'lessons' not in tables:
        op.create_table('lessons',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('module_id', sa.String(length=36), nullable=False),
            sa.Column('title', sa.String(length=255), nullable=False),
            sa.Column('content', sa.Text(), nullable=False),
            sa.Column('type', sa.String(length=20), nullable=False, server_default='article'),
            sa.Column('ordering', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('image_url', sa.String(length=1024), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['module_id'], ['modules.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_lessons_module_id', 'lessons', ['module_id'], unique=False)
        op.create_index('ix_lessons_module_ordering', 'lessons', ['module_id', 'ordering'], unique=False)

    if 'lesson_completions' not in tables:
        op.create_table('lesson_completions',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('lesson_id', sa.String(length=36), nullable=False),
            sa.Column('user_id', sa.String(length=36), nullable=False),
            sa.Column('completed_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['lesson_id'], ['lessons.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('lesson_id', 'user_id', name='uq_lesson_completions_lesson_user')
        )
        op.create_index('ix_lesson_completions_lesson_id', 'lesson_completions', ['lesson_id'], unique=False)
        op.create_index('ix_lesson_completions_user_id', 'lesson_completions', ['user_id'], unique=False)

    if 'quizzes' not in tables:
        op.create_table('quizzes',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('course_id', sa.String(length=36), nullable=False),
            sa.Column('module_id', sa.String(length=36), nullable=True),
            sa.Column('title', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('passing_score', sa.Integer(), nullable=False, server_default='60'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.CheckConstraint('passing_score >= 0 AND passing_score <= 100', name='ck_quizzes_passing_score'),
            sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['module_id'], ['modules.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quizzes_course_id', 'quizzes', ['course_id'], unique=False)
        op.create_index('ix_quizzes_module_id', 'quizzes', ['module_id'], unique=False)
        op.create_index('ix_quizzes_created_at', 'quizzes', ['created_at'], unique=False)
        op.create_index('ix_quizzes_course_module', 'quizzes', ['course_id', 'module_id'], unique=False)

    if 'quiz_questions' not in tables:
        op.create_table('quiz_questions',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('quiz_id', sa.String(length=36), nullable=False),
            sa.Column('type', sa.String(length=30), nullable=False),
            sa.Column('prompt_html', sa.Text(), nullable=False),
            sa.Column('ordering', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quiz_questions_quiz_id', 'quiz_questions', ['quiz_id'], unique=False)
        op.create_index('ix_quiz_questions_quiz_ordering', 'quiz_questions', ['quiz_id', 'ordering'], unique=False)

    if 'quiz_options' not in tables:
        op.create_table('quiz_options',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('question_id', sa.String(length=36), nullable=False),
            sa.Column('text', sa.Text(), nullable=False),
            sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('ordering', sa.Integer(), nullable=False, server_default='1'),
            sa.ForeignKeyConstraint(['question_id'], ['quiz_questions.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quiz_options_question_id', 'quiz_options', ['question_id'], unique=False)

    if 'quiz_attempts' not in tables:
        op.create_table('quiz_attempts',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('quiz_id', sa.String(length=36), nullable=False),
            sa.Column('user_id', sa.String(length=36), nullable=False),
            sa.Column('started_at', sa.DateTime(), nullable=False),
            sa.Column('finished_at', sa.DateTime(), nullable=True),
            sa.Column('total_score', sa.Integer(), nullable=True),
            sa.Column('passed', sa.Boolean(), nullable=True),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quiz_attempts_quiz_id', 'quiz_attempts', ['quiz_id'], unique=False)
        op.create_index('ix_quiz_attempts_user_id', 'quiz_attempts', ['user_id'], unique=False)
        op.create_index('ix_quiz_attempts_user_quiz', 'quiz_attempts', ['user_id', 'quiz_id'], unique=False)

    if 'question_responses' not in tables:
        op.create_table('question_responses',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('attempt_id', sa.String(length=36), nullable=False),
            sa.Column('question_id', sa.String(length=36), nullable=False),
            sa.Column('selected_option_id', sa.String(length=36), nullable=True),
            sa.Column('answer_text', sa.Text(), nullable=True),
            sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('score_awarded', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['attempt_id'], ['quiz_attempts.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['question_id'], ['quiz_questions.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['selected_option_id'], ['quiz_options.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_question_responses_attempt_id', 'question_responses', ['attempt_id'], unique=False)
        op.create_index('ix_question_responses_question_id', 'question_responses', ['question_id'], unique=False)

    if 'certificate_templates' not in tables:
        op.create_table('certificate_templates',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('image_url', sa.String(length=1024), nullable=False),
            sa.Column('name_x', sa.Integer(), nullable=False, server_default='400'),
            sa.Column('name_y', sa.Integer(), nullable=False, server_default='300'),
            sa.Column('course_x', sa.Integer(), nullable=False, server_default='400'),
            sa.Column('course_y', sa.Integer(), nullable=False, server_default='380'),
            sa.Column('date_x', sa.Integer(), nullable=False, server_default='400'),
            sa.Column('date_y', sa.Integer(), nullable=False, server_default='460'),
            sa.Column('font_size', sa.Integer(), nullable=False, server_default='32'),
            sa.Column('font_color', sa.String(length=20), nullable=False, server_default='#111111'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_certificate_templates_is_active', 'certificate_templates', ['is_active'], unique=False)
        op.create_index('ix_certificate_templates_created_at', 'certificate_templates', ['created_at'], unique=False)

    if 'certificates_issued' not in tables:
        op.create_table('certificates_issued',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('attempt_id', sa.String(length=36), nullable=True),
            sa.Column('user_id', sa.String(length=36), nullable=False),
            sa.Column('course_id', sa.String(length=36), nullable=False),
            sa.Column('template_id', sa.String(length=36), nullable=True),
            sa.Column('issued_at', sa.DateTime(), nullable=False),
            sa.Column('certificate_url', sa.String(length=1024), nullable=True),
            sa.ForeignKeyConstraint(['attempt_id'], ['quiz_attempts.id'], ondelete='SET NULL'),
            sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['template_id'], ['certificate_templates.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'course_id', name='uq_certificates_issued_user_course')
        )
        op.create_index('ix_certificates_issued_attempt_id', 'certificates_issued', ['attempt_id'], unique=False)
        op.create_index('ix_certificates_issued_user_id', 'certificates_issued', ['user_id'], unique=False)
        op.create_index('ix_certificates_issued_course_id', 'certificates_issued', ['course_id'], unique=False)


def downgrade():
    op.drop_table('certificates_issued')
    op.drop_table('certificate_templates')
    op.drop_table('question_responses')
    op.drop_table('quiz_attempts')
    op.drop_table('quiz_options')
    op.drop_table('quiz_questions')
    op.drop_table('quizzes')
    op.drop_table('lesson_completions')
    op.drop_table('lessons')
    op.drop_table('modules')
    op.drop_table('courses')
    op.drop_table('profiles')
