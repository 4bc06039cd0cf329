"""
Pytest configuration and fixtures for testing.

Every test gets a fresh application backed by an in-memory SQLite database
and a temporary upload directory.
"""
import os

import pytest

os.environ.setdefault('SECRET_KEY', 'test-secret-key-0f8a7c')
os.environ.setdefault('FLASK_ENV', 'testing')

from academy import create_app, db  # noqa: E402
from academy.auth.models import Profile  # noqa: E402
from academy.auth.utils import hash_password  # noqa: E402
from academy.catalog.models import Course, Lesson, Module  # noqa: E402
from academy.common.ids import new_id  # noqa: E402
from academy.quiz.models import Question, Quiz, QuizOption  # noqa: E402

PASSWORD = 'correct-horse-battery'


@pytest.fixture
def app(tmp_path):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key-0f8a7c',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'UPLOAD_DIR': str(tmp_path / 'uploads'),
        'MAX_FILE_SIZE': 1024,
        'CERTIFICATE_PDF_ENABLED': False,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def make_profile(app):
    """Factory for stored profiles; returns the new profile id."""
    def _make(role='student', status='active', email=None, password=None, first_name=None, last_name=None):
        with app.app_context():
            profile = Profile(
                email=email or f"user-{new_id()[:8]}@example.com",
                password_hash=hash_password(password) if password else None,
                first_name=first_name,
                last_name=last_name,
                role=role,
                status=status,
            )
            db.session.add(profile)
            db.session.commit()
            return profile.id
    return _make


@pytest.fixture
def login(client):
    """Sign a profile in by writing the Flask-Login session directly."""
    def _login(profile_id):
        with client.session_transaction() as sess:
            sess['_user_id'] = profile_id
            sess['_fresh'] = True
    return _login


@pytest.fixture
def make_course(app):
    """
    Factory for a course with one module of lessons and, optionally, a final
    quiz of two multiple-choice questions. Returns a dict of the ids.
    """
    def _make(instructor_id=None, course_id=None, lessons=2, final_quiz=True, passing_score=60, archived=False):
        with app.app_context():
            course = Course(id=course_id or new_id(), title='Intro to Testing',
                            instructor_id=instructor_id, archived=archived)
            db.session.add(course)
            module = Module(course_id=course.id, title='Basics', ordering=1)
            db.session.add(module)
            db.session.flush()

            lesson_ids = []
            for index in range(1, lessons + 1):
                lesson = Lesson(module_id=module.id, title=f'Lesson {index}', content='<p>Body</p>', ordering=index)
                db.session.add(lesson)
                db.session.flush()
                lesson_ids.append(lesson.id)

            ids = {'course': course.id, 'module': module.id, 'lessons': lesson_ids}
            if final_quiz:
                quiz = Quiz(course_id=course.id, module_id=None, title='Final', passing_score=passing_score)
                db.session.add(quiz)
                db.session.flush()
                questions = []
                for index in (1, 2):
                    question = Question(quiz_id=quiz.id, type='multiple_choice',
                                        prompt_html=f'<p>Q{index}</p>', ordering=index)
                    db.session.add(question)
                    db.session.flush()
                    right = QuizOption(question_id=question.id, text='Right', is_correct=True, ordering=1)
                    wrong = QuizOption(question_id=question.id, text='Wrong', is_correct=False, ordering=2)
                    db.session.add_all([right, wrong])
                    db.session.flush()
                    questions.append({'id': question.id, 'right': right.id, 'wrong': wrong.id})
                ids['quiz'] = quiz.id
                ids['questions'] = questions

            db.session.commit()
            return ids
    return _make
