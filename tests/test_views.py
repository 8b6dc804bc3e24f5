import re
import unittest

from fastapi.testclient import TestClient

from fake_backend import FakeRecordsBackend, exam_row, teacher_row
from paperswift.config import Settings
from paperswift.core.session_store import MemorySessionPersistence
from paperswift.main import create_app


FORM_ID = re.compile(r'name="form_id" value="([^"]+)"')


def _form_id(response) -> str:
    match = FORM_ID.search(response.text)
    assert match is not None, 'form_id missing from page'
    return match.group(1)


class ConsoleViewTestCase(unittest.TestCase):
    logged_in = True
    settings_overrides: dict = {}

    def setUp(self):
        self.fake = FakeRecordsBackend()
        self.persistence = MemorySessionPersistence(self.fake.token if self.logged_in else None)
        config = Settings(backend_url='http://records.test', form_registry_capacity=16, **self.settings_overrides)
        self.app = create_app(config, persistence=self.persistence, transport=self.fake.transport())
        self.client = TestClient(self.app, follow_redirects=False)
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)


class GuardAndLoginTests(ConsoleViewTestCase):
    logged_in = False

    def test_unauthenticated_page_redirects_to_login_without_backend_call(self):
        response = self.client.get('/exams')
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers['location'], '/login?next=/exams')
        self.assertEqual(self.fake.requests, [])

    def test_health_and_login_page_are_public(self):
        self.assertEqual(self.client.get('/health').json()['status'], 'ok')
        response = self.client.get('/login?next=/courses')
        self.assertEqual(response.status_code, 200)
        self.assertIn('Log in to Paper-Swift', response.text)
        self.assertIn('value="/courses"', response.text)

    def test_login_stores_token_and_redirects(self):
        response = self.client.post(
            '/login',
            data={'username': 'admin', 'password': 'secret-pass', 'email': 'admin@example.com', 'next': '/exams'},
        )
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers['location'], '/exams')
        self.assertEqual(self.persistence.load(), self.fake.token)

        page = self.client.get('/exams')
        self.assertEqual(page.status_code, 200)
        self.assertIn('You are successfully logged in!', page.text)

    def test_failed_login_stays_on_form(self):
        response = self.client.post('/login', data={'username': 'admin', 'password': 'nope', 'next': '/'})
        self.assertEqual(response.status_code, 401)
        self.assertIn('Unable to login with this credentials.', response.text)
        self.assertIn('value="admin"', response.text)
        self.assertIsNone(self.persistence.load())

    def test_open_redirect_is_refused(self):
        response = self.client.post(
            '/login',
            data={'username': 'admin', 'password': 'secret-pass', 'next': '//evil.example/'},
        )
        self.assertEqual(response.headers['location'], '/')


class ListViewTests(ConsoleViewTestCase):
    def test_empty_collection_shows_placeholder(self):
        response = self.client.get('/degrees')
        self.assertEqual(response.status_code, 200)
        self.assertIn('Degrees (0)', response.text)
        self.assertIn('There are no degrees yet.', response.text)
        self.assertIn('+ Create New Degree', response.text)

    def test_records_render_as_cards(self):
        self.fake.seed('exams', exam_row(1, sem=3), exam_row(2, sem=5, supplementary=True))
        response = self.client.get('/exams')
        self.assertEqual(response.status_code, 200)
        self.assertIn('Exams (2)', response.text)
        self.assertIn('href="/exams/2/delete"', response.text)
        self.assertIn('Supplementary exam', response.text)
        self.assertIn('2024-05-10', response.text)

    def test_course_card_links_syllabus(self):
        self.fake.seed(
            'courses',
            {'code': 'CS101', 'name': 'Programming', 'department': 'CSE', 'sem': 1, 'scheme': 2019, 'syllabus_doc_url': 'https://docs.example/cs101.pdf'},
        )
        response = self.client.get('/courses')
        self.assertEqual(response.status_code, 200)
        self.assertIn('href="https://docs.example/cs101.pdf"', response.text)

    def test_list_is_cached_until_refresh(self):
        self.fake.seed('degrees', {'code': 'BE', 'name': 'Bachelor of Engineering'})
        self.client.get('/degrees')
        self.client.get('/degrees')
        self.assertEqual(len(self.fake.calls('GET')), 1)
        self.client.get('/degrees?refresh=1')
        self.assertEqual(len(self.fake.calls('GET')), 2)

    def test_backend_failure_shows_error_panel(self):
        self.fake.fail_status = 500
        response = self.client.get('/courses')
        self.assertEqual(response.status_code, 502)
        self.assertIn('Could not load courses.', response.text)

    def test_schemes_use_configured_path(self):
        self.fake.seed('scemes', {'sid': 2019, 'degree': 'BE', 'year': 2019, 'guidelines_doc_url': ''})
        response = self.client.get('/schemes')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.fake.calls('GET')[0].url.path, '/management/scemes/')

    def test_home_links_every_resource(self):
        response = self.client.get('/')
        self.assertEqual(response.status_code, 200)
        for url in ('/exams', '/courses', '/teachers', '/departments', '/degrees', '/schemes'):
            self.assertIn(f'href="{url}"', response.text)


class FormViewTests(ConsoleViewTestCase):
    def test_create_redirects_to_list(self):
        page = self.client.get('/degrees/new')
        self.assertEqual(page.status_code, 200)
        self.assertIn('Create Degree', page.text)
        response = self.client.post(
            '/degrees/new',
            data={'form_id': _form_id(page), 'code': 'MTECH', 'name': 'Master of Technology'},
        )
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers['location'], '/degrees')
        listing = self.client.get('/degrees')
        self.assertIn('Master of Technology', listing.text)
        self.assertIn('Degree created', listing.text)

    def test_resubmitting_same_form_creates_once(self):
        page = self.client.get('/exams/new')
        data = {
            'form_id': _form_id(page),
            'sem': '3',
            'scheme': '2019',
            'paper_submission_deadline': '2024-05-10',
        }
        first = self.client.post('/exams/new', data=data)
        second = self.client.post('/exams/new', data=data)
        self.assertEqual(first.status_code, 303)
        self.assertEqual(second.status_code, 303)
        self.assertEqual(len(self.fake.calls('POST')), 1)
        self.assertEqual(len(self.fake.collections['exams']), 1)

    def test_validation_error_rerenders_without_backend_call(self):
        page = self.client.get('/courses/new')
        response = self.client.post(
            '/courses/new',
            data={'form_id': _form_id(page), 'code': 'CS101', 'name': 'Programming', 'sem': 'abc', 'scheme': '2019', 'department': ''},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('Semester must be a whole number', response.text)
        self.assertIn('Department is required', response.text)
        self.assertIn('value="abc"', response.text)
        self.assertEqual(self.fake.calls('POST'), [])

    def test_backend_rejection_keeps_values(self):
        self.fake.seed('degrees', {'code': 'BE', 'name': 'Bachelor of Engineering'})
        page = self.client.get('/degrees/new')
        response = self.client.post('/degrees/new', data={'form_id': _form_id(page), 'code': 'BE', 'name': 'Duplicate'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('value="Duplicate"', response.text)
        self.assertIn('Something went wrong.', response.text)

    def test_edit_page_prefills_and_updates(self):
        self.fake.seed('teachers', teacher_row(3))
        page = self.client.get('/teachers/3')
        self.assertEqual(page.status_code, 200)
        self.assertIn('Edit Teacher', page.text)
        self.assertIn('value="Meera Iyer"', page.text)
        self.assertIn('value="1984-02-29"', page.text)
        response = self.client.post(
            '/teachers/3',
            data={
                'form_id': _form_id(page),
                'name': 'Meera Iyer',
                'gender': 'F',
                'designation': 'Dean',
                'mobile_no': '9000000001',
                'dob': '1984-02-29',
                'user': '3',
            },
        )
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers['location'], '/teachers')
        row = self.fake.collections['teachers']['3']
        self.assertEqual(row['designation'], 'Dean')
        self.assertIs(row['is_external'], False)
        self.assertEqual(self.fake.calls('PATCH')[0].url.path, '/management/teachers/3/')

    def test_missing_record_is_not_found(self):
        response = self.client.get('/exams/999')
        self.assertEqual(response.status_code, 404)
        self.assertIn('Exam not found', response.text)

    def test_non_numeric_key_is_not_found(self):
        response = self.client.get('/exams/abc')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.fake.calls(), [])

    def test_record_outside_cached_list_is_fetched_by_key(self):
        self.client.get('/degrees')
        self.fake.seed('degrees', {'code': 'PHD', 'name': 'Doctorate'})
        response = self.client.get('/degrees/PHD')
        self.assertEqual(response.status_code, 200)
        self.assertIn('value="Doctorate"', response.text)
        self.assertEqual(self.fake.calls('GET')[-1].url.path, '/management/degrees/PHD/')


class DeleteViewTests(ConsoleViewTestCase):
    def test_delete_asks_then_deletes(self):
        self.fake.seed('exams', exam_row(1), exam_row(2))
        page = self.client.get('/exams/1/delete')
        self.assertEqual(page.status_code, 200)
        self.assertIn('Are you absolutely sure?', page.text)
        self.assertEqual(self.fake.calls('DELETE'), [])

        response = self.client.post('/exams/1/delete', data={'form_id': _form_id(page)})
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers['location'], '/exams')
        self.assertEqual(self.fake.calls('DELETE')[0].url.path, '/management/exams/1/')
        listing = self.client.get('/exams')
        self.assertIn('Exam deleted.', listing.text)
        self.assertIn('Exams (1)', listing.text)

    def test_unconfirmed_delete_post_asks_again(self):
        self.fake.seed('exams', exam_row(1))
        response = self.client.post('/exams/1/delete', data={'form_id': 'forged'})
        self.assertEqual(response.status_code, 200)
        self.assertIn('Are you absolutely sure?', response.text)
        self.assertEqual(self.fake.calls('DELETE'), [])

    def test_form_for_other_record_is_not_reused(self):
        self.fake.seed('exams', exam_row(1), exam_row(2))
        page = self.client.get('/exams/1/delete')
        response = self.client.post('/exams/2/delete', data={'form_id': _form_id(page)})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.fake.calls('DELETE'), [])

    def test_repeated_confirmation_deletes_once(self):
        self.fake.seed('exams', exam_row(1))
        page = self.client.get('/exams/1/delete')
        form_id = _form_id(page)
        self.client.post('/exams/1/delete', data={'form_id': form_id})
        again = self.client.post('/exams/1/delete', data={'form_id': form_id})
        self.assertEqual(again.status_code, 303)
        self.assertEqual(again.headers['location'], '/exams')
        self.assertEqual(len(self.fake.calls('DELETE')), 1)


class BackendTimingViewTests(ConsoleViewTestCase):
    settings_overrides = {'metrics_slow_ms': 0}

    def test_configured_threshold_labels_backend_calls_with_view(self):
        with self.assertLogs('paperswift.metrics', level='INFO') as logs:
            response = self.client.get('/degrees')
        self.assertEqual(response.status_code, 200)
        slow = [line for line in logs.output if 'path=/management/degrees/' in line]
        self.assertEqual(len(slow), 1)
        self.assertIn('backend_request_slow view=list_page /degrees method=GET', slow[0])


class LogoutTests(ConsoleViewTestCase):
    def test_logout_clears_session(self):
        response = self.client.post('/logout')
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers['location'], '/login')
        self.assertIsNone(self.persistence.load())
        follow = self.client.get('/exams')
        self.assertEqual(follow.status_code, 303)
        login = self.client.get('/login')
        self.assertIn('You are successfully logged out!', login.text)


if __name__ == '__main__':
    unittest.main()
