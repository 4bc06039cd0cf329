"""
Quiz authoring and grading.

Functions here stage changes on ``db.session`` and never commit; the calling
route commits once so that a quiz, its questions and its options are written
together or not at all.
"""
from datetime import datetime

from flask import current_app

from academy import db
from academy.catalog.models import Course, Module
from academy.common.request_utils import BadBody, as_int, clean_str, optional_str
from academy.quiz.models import (
    CHOICE_TYPES,
    QUESTION_TYPES,
    Question,
    QuestionResponse,
    Quiz,
    QuizAttempt,
    QuizOption,
)


class QuizError(ValueError):
    """Invalid quiz input; ``status`` is the HTTP status to answer with."""
    status = 400


class QuizNotFound(QuizError):
    status = 404


class QuizConflict(QuizError):
    status = 409


def parse_passing_score(value, default=None) -> int:
    try:
        score = as_int(value, "passing_score")
    except BadBody as e:
        raise QuizError(str(e))
    if score is None:
        return default
    if not 0 <= score <= 100:
        raise QuizError("passing_score must be between 0 and 100")
    return score


def save_quiz(data: dict) -> tuple[Quiz, bool]:
    """
    Create or update a quiz from a flat body.

    With ``id`` the existing row gets new title, description and
    passing_score while its course and module stay as they are. Without
    ``id`` a new quiz is inserted; a missing ``module_id`` makes it the
    course's final quiz. Returns (quiz, created).
    """
    if not isinstance(data, dict):
        raise QuizError("quiz must be an object")

    title = clean_str(data.get("title"))
    course_id = clean_str(data.get("course_id"))
    if not course_id:
        raise QuizError("course_id is required")
    if not title:
        raise QuizError("title is required")

    description = optional_str(data.get("description"))
    quiz_id = data.get("id")

    if quiz_id:
        quiz = db.session.get(Quiz, str(quiz_id))
        if quiz is None:
            raise QuizNotFound("Quiz not found")
        quiz.title = title
        quiz.description = description
        quiz.passing_score = parse_passing_score(data.get("passing_score"), quiz.passing_score)
        return quiz, False

    if db.session.get(Course, course_id) is None:
        raise QuizNotFound("Course not found")

    module_id = optional_str(data.get("module_id"))
    if module_id:
        module = db.session.get(Module, module_id)
        if module is None or module.course_id != course_id:
            raise QuizError("Invalid module_id")

    taken = Quiz.query.filter_by(course_id=course_id)
    if module_id:
        taken = taken.filter(Quiz.module_id == module_id)
    else:
        taken = taken.filter(Quiz.module_id.is_(None))
    if taken.first() is not None:
        if module_id:
            raise QuizConflict("This module already has a quiz")
        raise QuizConflict("This course already has a final quiz")

    quiz = Quiz(
        course_id=course_id,
        module_id=module_id,
        title=title,
        description=description,
        passing_score=parse_passing_score(
            data.get("passing_score"), current_app.config["DEFAULT_PASSING_SCORE"]
        ),
    )
    db.session.add(quiz)
    db.session.flush()
    return quiz, True


def _build_options(question_type: str, raw_options, where: str) -> list[QuizOption]:
    if question_type not in CHOICE_TYPES:
        # short answers never carry options
        return []
    if not isinstance(raw_options, list) or len(raw_options) < 2:
        raise QuizError(f"{where}: {question_type} questions need at least two options")

    options = []
    for index, raw in enumerate(raw_options, start=1):
        if not isinstance(raw, dict):
            raise QuizError(f"{where}: option {index} must be an object")
        text = clean_str(raw.get("text"))
        if not text:
            raise QuizError(f"{where}: option {index} text is required")
        try:
            ordering = as_int(raw.get("ordering"), "ordering")
        except BadBody as e:
            raise QuizError(f"{where}: option {index} {e}")
        options.append(QuizOption(
            text=text,
            is_correct=bool(raw.get("is_correct")),
            ordering=ordering if ordering is not None else index,
        ))

    correct = sum(1 for option in options if option.is_correct)
    if correct != 1:
        raise QuizError(f"{where}: exactly one option must be marked correct")
    return options


def build_question(quiz: Quiz, raw: dict, default_ordering: int, where: str = "question",
                   require_options: bool = True) -> Question:
    """
    Validated, unsaved Question (with its options) for ``quiz``.

    With ``require_options`` false a choice question may arrive without an
    ``options`` key and get its options one by one later.
    """
    if not isinstance(raw, dict):
        raise QuizError(f"{where} must be an object")

    question_type = clean_str(raw.get("type"))
    if question_type not in QUESTION_TYPES:
        raise QuizError(f"{where}: type must be one of {', '.join(QUESTION_TYPES)}")

    prompt_html = raw.get("prompt_html")
    if not isinstance(prompt_html, str) or not prompt_html.strip():
        raise QuizError(f"{where}: prompt_html is required")

    try:
        ordering = as_int(raw.get("ordering"), "ordering")
    except BadBody as e:
        raise QuizError(f"{where}: {e}")

    question = Question(
        quiz_id=quiz.id,
        type=question_type,
        prompt_html=prompt_html,
        ordering=ordering if ordering is not None else default_ordering,
    )
    if require_options or raw.get("options") is not None:
        question.options = _build_options(question_type, raw.get("options"), where)
    return question


def replace_questions(quiz: Quiz, raw_questions) -> list[Question]:
    """
    Replace every question and option of ``quiz`` with ``raw_questions``.

    Everything is validated before the old rows are removed, so a bad
    payload leaves the stored questions untouched.
    """
    if raw_questions is None:
        raw_questions = []
    if not isinstance(raw_questions, list):
        raise QuizError("questions must be a list")

    new_questions = [
        build_question(quiz, raw, index, where=f"question {index}")
        for index, raw in enumerate(raw_questions, start=1)
    ]

    old_ids = [row.id for row in db.session.query(Question.id).filter_by(quiz_id=quiz.id)]
    if old_ids:
        QuizOption.query.filter(QuizOption.question_id.in_(old_ids)).delete(synchronize_session=False)
        Question.query.filter_by(quiz_id=quiz.id).delete(synchronize_session=False)
        db.session.expire(quiz, ["questions"])

    db.session.add_all(new_questions)
    db.session.flush()
    return new_questions


def add_option(question: Question, data: dict) -> QuizOption:
    """Append one option; a question keeps at most one correct option."""
    text = data.get("text")
    is_correct = data.get("is_correct")
    if not isinstance(text, str) or not isinstance(is_correct, bool):
        raise QuizError("`text` must be a string and `is_correct` a boolean.")
    if not text.strip():
        raise QuizError("text is required")
    if question.type not in CHOICE_TYPES:
        raise QuizError("short_answer questions do not take options")

    existing = QuizOption.query.filter_by(question_id=question.id).all()
    if is_correct and any(option.is_correct for option in existing):
        raise QuizError("This question already has a correct option")

    try:
        ordering = as_int(data.get("ordering"), "ordering")
    except BadBody as e:
        raise QuizError(str(e))

    option = QuizOption(
        question_id=question.id,
        text=text.strip(),
        is_correct=is_correct,
        ordering=ordering if ordering is not None else len(existing) + 1,
    )
    db.session.add(option)
    db.session.flush()
    return option


def load_quiz_for_editor(quiz_id: str, course_id: str, module_id: str | None = None, final: bool = False):
    """
    Quiz with its questions and their options, or None when no quiz matches.

    ``final`` restricts the lookup to the course's final quiz, so a module
    quiz id is not found there. Short-answer questions always come back with
    an empty option list.
    """
    query = Quiz.query.filter_by(id=quiz_id, course_id=course_id)
    if final:
        query = query.filter(Quiz.module_id.is_(None))
    elif module_id:
        query = query.filter_by(module_id=module_id)
    quiz = query.first()
    if quiz is None:
        return None

    questions = Question.query.filter_by(quiz_id=quiz.id).order_by(Question.ordering.asc()).all()
    question_ids = [q.id for q in questions]
    options = []
    if question_ids:
        options = (
            QuizOption.query.filter(QuizOption.question_id.in_(question_ids))
            .order_by(QuizOption.ordering.asc())
            .all()
        )

    by_question = {}
    for option in options:
        by_question.setdefault(option.question_id, []).append(option.to_dict())

    payload = []
    for question in questions:
        item = question.to_dict()
        item["options"] = [] if question.type == "short_answer" else by_question.get(question.id, [])
        payload.append(item)

    return {"quiz": quiz.to_dict(), "questions": payload}


def start_attempt(quiz: Quiz, user_id: str) -> QuizAttempt:
    attempt = QuizAttempt(quiz_id=quiz.id, user_id=user_id, started_at=datetime.utcnow())
    db.session.add(attempt)
    db.session.flush()
    return attempt


def _answers_by_question(answers, question_ids: set) -> dict:
    by_question = {}
    for index, answer in enumerate(answers, start=1):
        if not isinstance(answer, dict) or not answer.get("question_id"):
            raise QuizError(f"answer {index} needs a question_id")
        question_id = str(answer["question_id"])
        if question_id not in question_ids:
            raise QuizError(f"answer {index}: question {question_id} is not part of this quiz")
        by_question[question_id] = answer
    return by_question


def grade_attempt(attempt: QuizAttempt, answers: list) -> dict:
    """
    Record one response per question of the attempt's quiz and finish it.

    A choice question is correct when the selected option is one of its own
    options and is flagged correct. Short answers are stored ungraded and do
    not count towards the percentage. ``total_score`` is the number of
    correct answers; the attempt passes when the percentage of correct
    gradable answers reaches the quiz's passing score.
    """
    if attempt.is_finished:
        raise QuizError("Attempt already submitted")
    if not isinstance(answers, list):
        raise QuizError("answers must be a list")

    quiz = attempt.quiz
    questions = Question.query.filter_by(quiz_id=quiz.id).order_by(Question.ordering.asc()).all()
    question_ids = {q.id for q in questions}
    by_question = _answers_by_question(answers, question_ids)

    options = {}
    if question_ids:
        for option in QuizOption.query.filter(QuizOption.question_id.in_(question_ids)):
            options[option.id] = option

    correct = 0
    gradable = 0
    responses = []
    for question in questions:
        answer = by_question.get(question.id) or {}
        if question.type == "short_answer":
            text = answer.get("answer_text", answer.get("text"))
            responses.append(QuestionResponse(
                attempt_id=attempt.id,
                question_id=question.id,
                answer_text=text if isinstance(text, str) else None,
                is_correct=False,
                score_awarded=0,
            ))
            continue

        gradable += 1
        selected_id = answer.get("selected_option_id", answer.get("option_id"))
        selected = options.get(str(selected_id)) if selected_id else None
        if selected_id and (selected is None or selected.question_id != question.id):
            raise QuizError(f"Option {selected_id} does not belong to question {question.id}")
        is_correct = bool(selected and selected.is_correct)
        if is_correct:
            correct += 1
        responses.append(QuestionResponse(
            attempt_id=attempt.id,
            question_id=question.id,
            selected_option_id=selected.id if selected else None,
            is_correct=is_correct,
            score_awarded=1 if is_correct else 0,
        ))

    percent = round(100.0 * correct / gradable, 2) if gradable else 0.0
    db.session.add_all(responses)
    attempt.finished_at = datetime.utcnow()
    attempt.total_score = correct
    attempt.passed = percent >= quiz.passing_score
    db.session.flush()

    return {
        "total_score": correct,
        "gradable": gradable,
        "percent": percent,
        "passing_score": quiz.passing_score,
        "passed": attempt.passed,
    }
