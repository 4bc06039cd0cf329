"""
Database models for quiz functionality.

A quiz belongs to a course and optionally to one module of that course;
``module_id`` null marks the course's final quiz.

Supported question types:
- multiple_choice: options, exactly one correct
- true_false: options, exactly one correct
- short_answer: no options, stored but never auto-graded
"""
from datetime import datetime

from academy import db
from academy.common.ids import new_id

QUESTION_TYPES = ("multiple_choice", "true_false", "short_answer")
CHOICE_TYPES = ("multiple_choice", "true_false")


class Quiz(db.Model):
    __tablename__ = "quizzes"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = db.Column(db.String(36), db.ForeignKey("modules.id", ondelete="CASCADE"), nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    passing_score = db.Column(db.Integer, nullable=False, default=60)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    questions = db.relationship("Question", backref="quiz", cascade="all, delete", order_by="Question.ordering")
    attempts = db.relationship("QuizAttempt", backref="quiz", cascade="all, delete")

    __table_args__ = (
        db.Index("ix_quizzes_course_module", "course_id", "module_id"),
        # one final quiz per course, one quiz per module
        db.Index(
            "uq_quizzes_course_final", "course_id", unique=True,
            postgresql_where=db.text("module_id IS NULL"),
            sqlite_where=db.text("module_id IS NULL"),
        ),
        db.Index("uq_quizzes_module", "module_id", unique=True),
        db.CheckConstraint("passing_score >= 0 AND passing_score <= 100", name="ck_quizzes_passing_score"),
    )

    def __repr__(self) -> str:
        return f"<Quiz {self.id}: {self.title}>"

    @property
    def is_final(self) -> bool:
        return self.module_id is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "module_id": self.module_id,
            "title": self.title,
            "description": self.description,
            "passing_score": self.passing_score,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Question(db.Model):
    __tablename__ = "quiz_questions"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    quiz_id = db.Column(db.String(36), db.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    type = db.Column(db.String(30), nullable=False)
    prompt_html = db.Column(db.Text, nullable=False)
    ordering = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    options = db.relationship("QuizOption", backref="question", cascade="all, delete", order_by="QuizOption.ordering")

    __table_args__ = (
        db.Index("ix_quiz_questions_quiz_ordering", "quiz_id", "ordering"),
    )

    def __repr__(self) -> str:
        return f"<Question {self.id}: {self.type}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "type": self.type,
            "prompt_html": self.prompt_html,
            "ordering": self.ordering,
        }


class QuizOption(db.Model):
    __tablename__ = "quiz_options"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    question_id = db.Column(db.String(36), db.ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False, index=True)
    text = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    ordering = db.Column(db.Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<QuizOption {self.id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question_id": self.question_id,
            "text": self.text,
            "is_correct": self.is_correct,
            "ordering": self.ordering,
        }


class QuizAttempt(db.Model):
    __tablename__ = "quiz_attempts"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    quiz_id = db.Column(db.String(36), db.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    started_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    finished_at = db.Column(db.DateTime, nullable=True)
    total_score = db.Column(db.Integer, nullable=True)
    passed = db.Column(db.Boolean, nullable=True)

    responses = db.relationship("QuestionResponse", backref="attempt", cascade="all, delete")

    __table_args__ = (
        db.Index("ix_quiz_attempts_user_quiz", "user_id", "quiz_id"),
    )

    def __repr__(self) -> str:
        return f"<QuizAttempt {self.id}>"

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "user_id": self.user_id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "total_score": self.total_score,
            "passed": self.passed,
        }


class QuestionResponse(db.Model):
    __tablename__ = "question_responses"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    attempt_id = db.Column(db.String(36), db.ForeignKey("quiz_attempts.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = db.Column(db.String(36), db.ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False, index=True)
    selected_option_id = db.Column(db.String(36), db.ForeignKey("quiz_options.id", ondelete="SET NULL"), nullable=True)
    answer_text = db.Column(db.Text, nullable=True)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    score_awarded = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "attempt_id": self.attempt_id,
            "question_id": self.question_id,
            "selected_option_id": self.selected_option_id,
            "answer_text": self.answer_text,
            "is_correct": self.is_correct,
            "score_awarded": self.score_awarded,
        }
