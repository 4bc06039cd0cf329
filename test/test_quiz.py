"""
Test cases for quiz authoring: saving quizzes, questions and options.
"""
import pytest
from sqlalchemy.exc import IntegrityError

from academy import db
from academy.quiz.models import Question, Quiz, QuizOption


def _mc(prompt, correct_index=0, count=2):
    return {
        'type': 'multiple_choice',
        'prompt_html': f'<p>{prompt}</p>',
        'options': [{'text': f'Option {i}', 'is_correct': i == correct_index} for i in range(count)],
    }


class TestSaveQuiz:
    """Test cases for the flat save endpoint."""

    def test_owner_creates_module_quiz(self, app, client, make_profile, make_course, login):
        """A new quiz uses the default passing score when none is given."""
        tutor = make_profile(role='tutor')
        ids = make_course(instructor_id=tutor, final_quiz=False)
        login(tutor)
        response = client.post('/api/admin/quizzes/save', json={
            'course_id': ids['course'], 'module_id': ids['module'], 'title': 'Module check',
        })
        assert response.status_code == 201
        with app.app_context():
            quiz = db.session.get(Quiz, response.get_json()['id'])
            assert quiz.module_id == ids['module']
            assert quiz.passing_score == 60

    def test_update_keeps_course_and_score(self, app, client, make_profile, make_course, login):
        """Updating renames the quiz but leaves its course, module and unsent score alone."""
        tutor = make_profile(role='tutor')
        ids = make_course(instructor_id=tutor, passing_score=80)
        login(tutor)
        response = client.post('/api/quizzes/save', json={
            'id': ids['quiz'], 'course_id': ids['course'], 'title': 'Renamed final',
        })
        assert response.status_code == 200
        assert response.get_json() == {'id': ids['quiz']}
        with app.app_context():
            quiz = db.session.get(Quiz, ids['quiz'])
            assert quiz.title == 'Renamed final'
            assert quiz.passing_score == 80
            assert quiz.module_id is None

    def test_required_fields(self, client, make_profile, make_course, login):
        """course_id and title are both required."""
        ids = make_course()
        login(make_profile(role='admin'))
        assert client.post('/api/admin/quizzes/save', json={'title': 'x'}).status_code == 400
        assert client.post('/api/admin/quizzes/save', json={'course_id': ids['course']}).status_code == 400

    def test_passing_score_range(self, client, make_profile, make_course, login):
        """Passing scores are percentages."""
        ids = make_course(final_quiz=False)
        login(make_profile(role='admin'))
        response = client.post('/api/admin/quizzes/save', json={
            'course_id': ids['course'], 'title': 'Too strict', 'passing_score': 150,
        })
        assert response.status_code == 400

    def test_module_from_other_course(self, client, make_profile, make_course, login):
        """A module of another course is rejected."""
        ids = make_course(final_quiz=False)
        other = make_course(final_quiz=False)
        login(make_profile(role='admin'))
        response = client.post('/api/admin/quizzes/save', json={
            'course_id': ids['course'], 'module_id': other['module'], 'title': 'Mixed',
        })
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid module_id'

    def test_unknown_course(self, client, make_profile, login):
        """Creating a quiz for a missing course is a 404."""
        login(make_profile(role='admin'))
        response = client.post('/api/admin/quizzes/save', json={'course_id': 'missing', 'title': 'Lost'})
        assert response.status_code == 404

    def test_non_owner_forbidden(self, client, make_profile, make_course, login):
        """Students and other tutors cannot author quizzes for a course."""
        ids = make_course(instructor_id=make_profile(role='tutor'))
        for role in ('student', 'tutor'):
            login(make_profile(role=role))
            response = client.post('/api/admin/quizzes/save', json={
                'id': ids['quiz'], 'course_id': ids['course'], 'title': 'Hijack',
            })
            assert response.status_code == 403

    def test_second_final_quiz_rejected(self, app, client, make_profile, make_course, login):
        """A course keeps a single final quiz."""
        ids = make_course()
        login(make_profile(role='admin'))
        response = client.post('/api/admin/quizzes/save', json={'course_id': ids['course'], 'title': 'Another final'})
        assert response.status_code == 409
        assert response.get_json()['error'] == 'This course already has a final quiz'
        with app.app_context():
            assert Quiz.query.filter_by(course_id=ids['course'], module_id=None).count() == 1

    def test_second_module_quiz_rejected(self, client, make_profile, make_course, login):
        """A module keeps a single quiz; the course final quiz is separate."""
        ids = make_course(final_quiz=False)
        login(make_profile(role='admin'))
        body = {'course_id': ids['course'], 'module_id': ids['module'], 'title': 'Module quiz'}
        assert client.post('/api/admin/quizzes/save', json=body).status_code == 201
        again = client.post('/api/admin/quizzes/save', json={'quiz': body, 'questions': [_mc('Dup')]})
        assert again.status_code == 409
        assert again.get_json()['error'] == 'This module already has a quiz'
        final = client.post('/api/admin/quizzes/save', json={'course_id': ids['course'], 'title': 'Final'})
        assert final.status_code == 201

    def test_database_enforces_single_final_quiz(self, app, make_course):
        """The unique index rejects a second final quiz written directly."""
        ids = make_course()
        with app.app_context():
            db.session.add(Quiz(course_id=ids['course'], module_id=None, title='Sneaky final'))
            with pytest.raises(IntegrityError):
                db.session.commit()
            db.session.rollback()


class TestSaveQuizGraph:
    """Test cases for saving a quiz together with its questions."""

    def test_replaces_questions(self, app, client, make_profile, make_course, login):
        """The stored questions become exactly the submitted ones."""
        ids = make_course()
        login(make_profile(role='admin'))
        response = client.post('/api/admin/quizzes/save', json={
            'quiz': {'id': ids['quiz'], 'course_id': ids['course'], 'title': 'Final v2'},
            'questions': [_mc('New one', correct_index=1, count=3), {'type': 'short_answer', 'prompt_html': '<p>Explain</p>'}],
        })
        assert response.status_code == 200
        body = response.get_json()
        assert body['quiz'] == {'id': ids['quiz']}
        assert [len(q['options']) for q in body['questions']] == [3, 0]

        with app.app_context():
            questions = Question.query.filter_by(quiz_id=ids['quiz']).order_by(Question.ordering).all()
            assert [q.prompt_html for q in questions] == ['<p>New one</p>', '<p>Explain</p>']
            assert QuizOption.query.count() == 3

    def test_invalid_graph_keeps_old_questions(self, app, client, make_profile, make_course, login):
        """Two correct options fail the save and nothing changes."""
        ids = make_course()
        login(make_profile(role='admin'))
        bad = _mc('Two right')
        bad['options'][1]['is_correct'] = True
        response = client.post('/api/admin/quizzes/save', json={
            'quiz': {'id': ids['quiz'], 'course_id': ids['course'], 'title': 'Broken'},
            'questions': [bad],
        })
        assert response.status_code == 400
        with app.app_context():
            assert Question.query.filter_by(quiz_id=ids['quiz']).count() == 2
            assert db.session.get(Quiz, ids['quiz']).title == 'Final'

    def test_graph_creates_quiz(self, client, make_profile, make_course, login):
        """Without an id the graph creates a new quiz."""
        ids = make_course(final_quiz=False)
        login(make_profile(role='admin'))
        response = client.post('/api/admin/quizzes/save', json={
            'quiz': {'course_id': ids['course'], 'title': 'Fresh final'},
            'questions': [_mc('First')],
        })
        assert response.status_code == 201
        assert len(response.get_json()['questions']) == 1


class TestQuizEditor:
    """Test cases for loading a quiz for the editor."""

    def test_final_quiz_with_options(self, client, make_profile, make_course, login):
        """Questions come back in order with their options."""
        ids = make_course()
        login(make_profile(role='admin'))
        response = client.get(f"/api/admin/quizzes/{ids['quiz']}/editor?final=1")
        assert response.status_code == 200
        data = response.get_json()
        assert data['quiz']['id'] == ids['quiz']
        assert [q['id'] for q in data['questions']] == [q['id'] for q in ids['questions']]
        assert all(len(q['options']) == 2 for q in data['questions'])

    def test_module_quiz_is_not_a_final_quiz(self, client, make_profile, make_course, login):
        """Asking for a final quiz with a module quiz id is a 404."""
        ids = make_course(final_quiz=False)
        login(make_profile(role='admin'))
        quiz_id = client.post('/api/admin/quizzes/save', json={
            'course_id': ids['course'], 'module_id': ids['module'], 'title': 'Module quiz',
        }).get_json()['id']
        assert client.get(f'/api/admin/quizzes/{quiz_id}/editor?final=1').status_code == 404
        assert client.get(f'/api/admin/quizzes/{quiz_id}/editor').status_code == 200

    def test_short_answer_options_never_shown(self, app, client, make_profile, make_course, login):
        """Option rows stored on a short-answer question are not returned."""
        ids = make_course()
        with app.app_context():
            question = Question(quiz_id=ids['quiz'], type='short_answer', prompt_html='<p>Explain</p>', ordering=3)
            db.session.add(question)
            db.session.flush()
            db.session.add(QuizOption(question_id=question.id, text='Stray', is_correct=True, ordering=1))
            db.session.commit()
            question_id = question.id

        login(make_profile(role='admin'))
        data = client.get(f"/api/admin/quizzes/{ids['quiz']}/editor?final=1").get_json()
        short = next(q for q in data['questions'] if q['id'] == question_id)
        assert short['type'] == 'short_answer'
        assert short['options'] == []

    def test_unknown_quiz(self, client, make_profile, login):
        """Unknown quiz ids are a 404."""
        login(make_profile(role='admin'))
        assert client.get('/api/admin/quizzes/missing/editor').status_code == 404


class TestQuestionsAndOptions:
    """Test cases for single question and option edits."""

    def _question(self, client, quiz_id, question_type='multiple_choice'):
        response = client.post(f'/api/admin/quizzes/{quiz_id}/questions', json={
            'type': question_type, 'prompt_html': '<p>Added later</p>',
        })
        assert response.status_code == 201
        return response.get_json()

    def test_add_question_then_options(self, client, make_profile, make_course, login):
        """A choice question can be built up option by option."""
        ids = make_course()
        login(make_profile(role='admin'))
        question = self._question(client, ids['quiz'])
        assert question['ordering'] == 3
        assert question['options'] == []

        url = f"/api/admin/quizzes/{ids['quiz']}/questions/{question['id']}/options"
        first = client.post(url, json={'text': 'Yes', 'is_correct': True})
        assert first.status_code == 201
        assert first.get_json()['ordering'] == 1
        assert client.post(url, json={'text': 'No', 'is_correct': False}).status_code == 201

    def test_second_correct_option_rejected(self, client, make_profile, make_course, login):
        """A question keeps at most one correct option."""
        ids = make_course()
        login(make_profile(role='admin'))
        url = f"/api/admin/quizzes/{ids['quiz']}/questions/{ids['questions'][0]['id']}/options"
        response = client.post(url, json={'text': 'Also right', 'is_correct': True})
        assert response.status_code == 400

    def test_option_types_checked(self, client, make_profile, make_course, login):
        """text must be a string and is_correct a boolean."""
        ids = make_course()
        login(make_profile(role='admin'))
        url = f"/api/admin/quizzes/{ids['quiz']}/questions/{ids['questions'][0]['id']}/options"
        response = client.post(url, json={'text': 'Maybe', 'is_correct': 'yes'})
        assert response.status_code == 400
        assert response.get_json()['error'] == '`text` must be a string and `is_correct` a boolean.'

    def test_short_answer_takes_no_options(self, client, make_profile, make_course, login):
        """Options cannot be added to a short-answer question."""
        ids = make_course()
        login(make_profile(role='admin'))
        question = self._question(client, ids['quiz'], 'short_answer')
        url = f"/api/admin/quizzes/{ids['quiz']}/questions/{question['id']}/options"
        assert client.post(url, json={'text': 'x', 'is_correct': False}).status_code == 400

    def test_delete_question(self, app, client, make_profile, make_course, login):
        """Deleting a question removes its options too."""
        ids = make_course()
        login(make_profile(role='admin'))
        question_id = ids['questions'][0]['id']
        response = client.delete(f"/api/admin/quizzes/{ids['quiz']}/questions/{question_id}")
        assert response.status_code == 200
        with app.app_context():
            assert db.session.get(Question, question_id) is None
            assert QuizOption.query.filter_by(question_id=question_id).count() == 0

    def test_tutor_lists_only_own_quizzes(self, client, make_profile, make_course, login):
        """The quiz listing is limited to the tutor's courses."""
        tutor = make_profile(role='tutor')
        mine = make_course(instructor_id=tutor)
        make_course(instructor_id=make_profile(role='tutor'))
        login(tutor)
        quizzes = client.get('/api/admin/quizzes').get_json()['quizzes']
        assert [q['id'] for q in quizzes] == [mine['quiz']]
