"""
Catalog writes that touch more than one row.

Like the quiz service these functions only stage changes; routes commit.
"""
from sqlalchemy import func

from academy import db
from academy.catalog.models import Course, LESSON_TYPES, Lesson, Module
from academy.common.request_utils import BadBody, as_bool, as_int, clean_str, optional_str
from academy.quiz.models import Quiz
from academy.quiz.service import QuizError, parse_passing_score, replace_questions

COURSE_FIELDS = ("title", "description", "image_url", "category", "level", "tag")


class CatalogError(ValueError):
    status = 400


def _int_field(value, field):
    try:
        return as_int(value, field)
    except BadBody as e:
        raise CatalogError(str(e))


def lesson_type(value) -> str:
    kind = clean_str(value) or "article"
    if kind not in LESSON_TYPES:
        raise CatalogError(f"type must be one of {', '.join(LESSON_TYPES)}")
    return kind


def max_lesson_ordering(module_id: str) -> int:
    return db.session.query(func.max(Lesson.ordering)).filter(Lesson.module_id == module_id).scalar() or 0


def insert_lesson(module: Module, title: str, content: str = "", kind: str = "article",
                  image_url=None, ordering=None) -> Lesson:
    """
    Add a lesson at ``ordering`` (clamped to 1..last+1), pushing the lessons
    at or after that position down by one.
    """
    last = max_lesson_ordering(module.id)
    desired = last + 1 if ordering is None else max(1, min(ordering, last + 1))

    if desired <= last:
        (
            Lesson.query.filter(Lesson.module_id == module.id, Lesson.ordering >= desired)
            .update({Lesson.ordering: Lesson.ordering + 1}, synchronize_session="fetch")
        )

    lesson = Lesson(
        module_id=module.id,
        title=title,
        content=content or "",
        type=kind,
        image_url=image_url,
        ordering=desired,
    )
    db.session.add(lesson)
    db.session.flush()
    return lesson


def move_lesson(lesson: Lesson, ordering: int) -> int:
    """Move a lesson within its module (clamped to 1..last), shifting the neighbours in between."""
    last = max(max_lesson_ordering(lesson.module_id), 1)
    target = max(1, min(ordering, last))
    current = lesson.ordering or 1
    if target == current:
        return current

    siblings = Lesson.query.filter(Lesson.module_id == lesson.module_id, Lesson.id != lesson.id)
    if target < current:
        siblings.filter(Lesson.ordering >= target, Lesson.ordering < current).update(
            {Lesson.ordering: Lesson.ordering + 1}, synchronize_session="fetch"
        )
    else:
        siblings.filter(Lesson.ordering > current, Lesson.ordering <= target).update(
            {Lesson.ordering: Lesson.ordering - 1}, synchronize_session="fetch"
        )
    lesson.ordering = target
    db.session.flush()
    return target


def apply_course_fields(course: Course, data: dict, admin: bool) -> None:
    """Copy editable course fields present in ``data``; archive flag and owner only for admins."""
    for field in COURSE_FIELDS:
        if field in data:
            value = optional_str(data.get(field))
            if field == "title" and not value:
                raise CatalogError("title cannot be empty")
            setattr(course, field, value)

    if admin:
        if "archived" in data:
            course.archived = bool(as_bool(data.get("archived")))
        if "instructor_id" in data:
            course.instructor_id = optional_str(data.get("instructor_id"))


def _quiz_has_questions(raw) -> bool:
    return isinstance(raw, dict) and isinstance(raw.get("questions"), list) and len(raw["questions"]) > 0


def _create_quiz(course_id: str, module_id, raw: dict, default_score: int) -> Quiz:
    title = clean_str(raw.get("title"))
    if not title:
        raise CatalogError("quiz title is required")
    try:
        quiz = Quiz(
            course_id=course_id,
            module_id=module_id,
            title=title,
            description=optional_str(raw.get("description")),
            passing_score=parse_passing_score(raw.get("passing_score"), default_score),
        )
        db.session.add(quiz)
        db.session.flush()
        replace_questions(quiz, raw["questions"])
    except QuizError as e:
        raise CatalogError(str(e))
    return quiz


def create_course_graph(data: dict, instructor_id: str, default_score: int) -> Course:
    """
    Course with its modules, lessons, module quizzes and final quiz.

    Quizzes are only created when they carry at least one question.
    """
    title = clean_str(data.get("title"))
    if not title:
        raise CatalogError("title is required")

    course = Course(
        title=title,
        description=optional_str(data.get("description")),
        image_url=optional_str(data.get("imageUrl", data.get("image_url"))),
        category=optional_str(data.get("category")),
        level=optional_str(data.get("level")),
        tag=optional_str(data.get("tag")),
        instructor_id=instructor_id,
    )
    db.session.add(course)
    db.session.flush()

    modules = data.get("modules") or []
    if not isinstance(modules, list):
        raise CatalogError("modules must be a list")

    for m_index, raw_module in enumerate(modules, start=1):
        if not isinstance(raw_module, dict) or not clean_str(raw_module.get("title")):
            raise CatalogError(f"module {m_index}: title is required")
        module_ordering = _int_field(raw_module.get("ordering"), "ordering")
        module = Module(
            course_id=course.id,
            title=clean_str(raw_module["title"]),
            ordering=module_ordering if module_ordering is not None else m_index,
        )
        db.session.add(module)
        db.session.flush()

        for l_index, raw_lesson in enumerate(raw_module.get("lessons") or [], start=1):
            if not isinstance(raw_lesson, dict) or not clean_str(raw_lesson.get("title")):
                raise CatalogError(f"module {m_index} lesson {l_index}: title is required")
            lesson_ordering = _int_field(raw_lesson.get("ordering"), "ordering")
            db.session.add(Lesson(
                module_id=module.id,
                title=clean_str(raw_lesson["title"]),
                content=raw_lesson.get("content") or "",
                type=lesson_type(raw_lesson.get("type")),
                ordering=lesson_ordering if lesson_ordering is not None else l_index,
                image_url=optional_str(raw_lesson.get("imageUrl", raw_lesson.get("image_url"))),
            ))

        if _quiz_has_questions(raw_module.get("quiz")):
            _create_quiz(course.id, module.id, raw_module["quiz"], default_score)

    final_quiz = data.get("finalQuiz", data.get("final_quiz"))
    if _quiz_has_questions(final_quiz):
        _create_quiz(course.id, None, final_quiz, default_score)

    db.session.flush()
    return course
