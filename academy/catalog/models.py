"""
Database models for the course catalog.

Course -> Module -> Lesson, each level ordered by an explicit ``ordering``
integer where 1 means first.
"""
from datetime import datetime

from academy import db
from academy.common.ids import new_id

LESSON_TYPES = ("article", "video", "image")


class Course(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(1024), nullable=True)
    category = db.Column(db.String(120), nullable=True)
    level = db.Column(db.String(60), nullable=True)
    tag = db.Column(db.String(120), nullable=True)
    archived = db.Column(db.Boolean, nullable=False, default=False, index=True)
    instructor_id = db.Column(db.String(36), db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    instructor = db.relationship("Profile", foreign_keys=[instructor_id])
    modules = db.relationship(
        "Module", backref="course", cascade="all, delete", order_by="Module.ordering"
    )
    quizzes = db.relationship("Quiz", backref="course", cascade="all, delete")

    def __repr__(self) -> str:
        return f"<Course {self.id}: {self.title}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "image_url": self.image_url,
            "category": self.category,
            "level": self.level,
            "tag": self.tag,
            "archived": self.archived,
            "instructor_id": self.instructor_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @property
    def final_quiz(self):
        return next((q for q in self.quizzes if q.module_id is None), None)

    def lesson_ids(self) -> list[str]:
        return [lesson.id for module in self.modules for lesson in module.lessons]


class Module(db.Model):
    __tablename__ = "modules"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    ordering = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    lessons = db.relationship(
        "Lesson", backref="module", cascade="all, delete", order_by="Lesson.ordering"
    )
    quizzes = db.relationship("Quiz", backref="module", cascade="all, delete")

    __table_args__ = (
        db.Index("ix_modules_course_ordering", "course_id", "ordering"),
    )

    def __repr__(self) -> str:
        return f"<Module {self.id}: {self.title}>"

    def to_dict(self, with_lessons: bool = False) -> dict:
        data = {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "ordering": self.ordering,
        }
        if with_lessons:
            data["lessons"] = [lesson.to_dict() for lesson in self.lessons]
        return data


class Lesson(db.Model):
    __tablename__ = "lessons"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    module_id = db.Column(db.String(36), db.ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False, default="")
    type = db.Column(db.String(20), nullable=False, default="article")
    ordering = db.Column(db.Integer, nullable=False, default=1)
    image_url = db.Column(db.String(1024), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    completions = db.relationship("LessonCompletion", backref="lesson", cascade="all, delete")

    __table_args__ = (
        db.Index("ix_lessons_module_ordering", "module_id", "ordering"),
    )

    def __repr__(self) -> str:
        return f"<Lesson {self.id}: {self.title}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "module_id": self.module_id,
            "title": self.title,
            "content": self.content,
            "type": self.type,
            "ordering": self.ordering,
            "image_url": self.image_url,
        }


class LessonCompletion(db.Model):
    __tablename__ = "lesson_completions"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    lesson_id = db.Column(db.String(36), db.ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    completed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("lesson_id", "user_id", name="uq_lesson_completions_lesson_user"),
    )
