import asyncio
import json
from datetime import date

import httpx


KEY_FIELDS = {
    'exams': 'eid',
    'courses': 'code',
    'departments': 'code',
    'degrees': 'code',
    'scemes': 'sid',
    'teachers': 'id',
}
SERVER_ASSIGNED = {'exams', 'teachers'}


class FakeRecordsBackend:
    """In-memory stand-in for the records REST service, served through httpx.MockTransport."""

    def __init__(self, token: str = 'token-admin'):
        self.token = token
        self.users = {'admin': 'secret-pass'}
        self.profile = {'pk': 7, 'username': 'admin', 'email': 'admin@example.com', 'first_name': 'Asha', 'last_name': 'Rao'}
        self.collections = {path: {} for path in KEY_FIELDS}
        self.requests: list[httpx.Request] = []
        self.gate: asyncio.Event | None = None
        self.fail_status: int | None = None
        self.offline = False
        self._next_id = 100

    def seed(self, path: str, *records: dict) -> None:
        key_field = KEY_FIELDS[path]
        for record in records:
            self.collections[path][str(record[key_field])] = dict(record)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, method: str | None = None, prefix: str = '/management/') -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.url.path.startswith(prefix) and (method is None or request.method == method)
        ]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.offline:
            raise httpx.ConnectError('connection refused', request=request)

        path = request.url.path
        if path == '/auth/login/':
            body = json.loads(request.content or b'{}')
            if self.users.get(body.get('username')) == body.get('password'):
                return httpx.Response(200, json={'key': self.token})
            return httpx.Response(400, json={'non_field_errors': ['Unable to log in with provided credentials.']})

        if request.headers.get('Authorization') != f'Token {self.token}':
            return httpx.Response(401, json={'detail': 'Invalid token.'})
        if path == '/auth/user/':
            return httpx.Response(200, json=self.profile)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={'detail': 'backend failure'})

        parts = [part for part in path.split('/') if part]
        if len(parts) not in (2, 3) or parts[0] != 'management' or parts[1] not in self.collections:
            return httpx.Response(404, json={'detail': 'Not found.'})
        resource = parts[1]
        rows = self.collections[resource]
        key_field = KEY_FIELDS[resource]

        if len(parts) == 2:
            if request.method == 'GET':
                return httpx.Response(200, json=list(rows.values()))
            if request.method == 'POST':
                body = json.loads(request.content or b'{}')
                if resource in SERVER_ASSIGNED:
                    self._next_id += 1
                    body[key_field] = self._next_id
                elif body.get(key_field) in (None, ''):
                    return httpx.Response(400, json={key_field: ['This field is required.']})
                if str(body[key_field]) in rows:
                    return httpx.Response(400, json={key_field: ['Already exists.']})
                rows[str(body[key_field])] = body
                return httpx.Response(201, json=body)
            return httpx.Response(405)

        key = parts[2]
        if key not in rows:
            return httpx.Response(404, json={'detail': 'Not found.'})
        if request.method == 'GET':
            return httpx.Response(200, json=rows[key])
        if request.method == 'PATCH':
            body = json.loads(request.content or b'{}')
            body.pop(key_field, None)
            rows[key].update(body)
            return httpx.Response(200, json=rows[key])
        if request.method == 'DELETE':
            rows.pop(key)
            return httpx.Response(204)
        return httpx.Response(405)


def exam_row(eid: int, sem: int = 3, scheme: int = 2019, deadline: date = date(2024, 5, 10), supplementary: bool = False) -> dict:
    return {
        'eid': eid,
        'sem': sem,
        'is_supplementary': supplementary,
        'paper_submission_deadline': deadline.isoformat(),
        'scheme': scheme,
    }


def teacher_row(teacher_id: int, name: str = 'Meera Iyer') -> dict:
    return {
        'id': teacher_id,
        'name': name,
        'is_external': False,
        'gender': 'F',
        'dob': '1984-02-29',
        'mobile_no': '9000000001',
        'address': 'Mangaluru',
        'designation': 'Professor',
        'qualification': 'PhD',
        'bank_account_no': '',
        'bank_ifsc': '',
        'bank_name': '',
        'pan_no': '',
        'user': 3,
    }
