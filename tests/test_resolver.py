"""
Tests for the response resolver

Tests response selection including:
- Single response actions
- Happy-path mode
- Interactive selection and default fallback
- Status codes and fallback status
- Resource model substitution and headers
"""

import asyncio

import pytest

from blueprintmock.model import Payload, Resource
from blueprintmock.mock.resolver import ResponseResolver


class FakeSession:
    """Session stand-in answering every question with a fixed text."""

    def __init__(self, answer=None):
        self.answer = answer
        self.calls = []

    async def ask(self, answers, method='', uri=''):
        self.calls.append({'answers': answers, 'method': method, 'uri': uri})
        return self.answer


def payload(name, body, headers=None):
    return Payload.from_dict({'name': name, 'body': body, 'headers': headers or []})


OK = payload('200', '{"ok":true}')
MISSING = payload('404', '{"err":true}')
RESOURCE = Resource(uri_template='/widgets', model=payload('', '[{"id":1}]'))


def resolve(resolver, responses, resource=RESOURCE):
    return asyncio.run(resolver.resolve(resource, responses, method='GET', uri='/widgets/7'))


class TestSelection:
    """Test choosing a variant."""

    def test_single_response_never_asks(self):
        session = FakeSession(answer='404')
        resolver = ResponseResolver(session)

        resolved = resolve(resolver, [OK])

        assert resolved.status == 200
        assert resolved.body == '{"ok":true}'
        assert resolved.interactive is False
        assert session.calls == []

    def test_happy_path_never_asks(self):
        session = FakeSession(answer='404')
        resolver = ResponseResolver(session, stick_to_happy_path=True)

        resolved = resolve(resolver, [OK, MISSING])

        assert resolved.status == 200
        assert resolved.variant is OK
        assert session.calls == []

    def test_answer_selects_variant(self):
        session = FakeSession(answer='404')
        resolver = ResponseResolver(session)

        resolved = resolve(resolver, [OK, MISSING])

        assert resolved.status == 404
        assert resolved.body == '{"err":true}'
        assert resolved.interactive is True
        assert resolved.answer == '404'
        assert session.calls == [{
            'answers': {'200': '{"ok":true}', '404': '{"err":true}'},
            'method': 'GET',
            'uri': '/widgets/7'
        }]

    @pytest.mark.parametrize('answer', ['', None, 'teapot', '404 '])
    def test_unmatched_answer_serves_default(self, answer):
        resolver = ResponseResolver(FakeSession(answer=answer))

        resolved = resolve(resolver, [OK, MISSING])

        assert resolved.status == 200
        assert resolved.body == '{"ok":true}'

    def test_select_first_matching_name(self):
        duplicate = payload('404', 'second')

        assert ResponseResolver.select([OK, MISSING, duplicate], '404') is MISSING


class TestStatus:
    """Test status code handling."""

    def test_name_is_status(self):
        resolver = ResponseResolver(FakeSession())

        assert resolve(resolver, [payload('418', 'teapot')]).status == 418

    def test_fallback_status(self, caplog):
        resolver = ResponseResolver(FakeSession(), fallback_status=299)

        with caplog.at_level('WARNING', logger='blueprintmock.resolver'):
            resolved = resolve(resolver, [payload('Created', 'done')])

        assert resolved.status == 299
        assert resolved.fallback_status is True
        assert 'not an HTTP status code' in caplog.text


class TestBody:
    """Test body rendering."""

    def test_model_reference_uses_resource_model(self):
        resolver = ResponseResolver(FakeSession())

        resolved = resolve(resolver, [payload('200', '[Widget][]')])

        assert resolved.body == '[{"id":1}]'

    def test_literal_body(self):
        resolver = ResponseResolver(FakeSession())

        resolved = resolve(resolver, [payload('200', '[1, 2]')])

        assert resolved.body == '[1, 2]'


class TestHeaders:
    """Test response headers."""

    def test_cors_origin_always_set(self):
        headers = ResponseResolver.headers_for(OK)

        assert headers == {'Access-Control-Allow-Origin': '*'}

    def test_declared_headers_copied(self):
        variant = payload('200', '{}', headers=[
            {'name': 'Content-Type', 'value': 'application/json'},
            {'name': 'X-Request-Id', 'value': 'abc'}
        ])

        headers = ResponseResolver.headers_for(variant)

        assert headers['Content-Type'] == 'application/json'
        assert headers['X-Request-Id'] == 'abc'
        assert headers['Access-Control-Allow-Origin'] == '*'

    def test_later_header_wins(self):
        variant = payload('200', '{}', headers=[
            {'name': 'Content-Type', 'value': 'text/plain'},
            {'name': 'content-type', 'value': 'application/json'}
        ])

        headers = ResponseResolver.headers_for(variant)

        assert headers == {'Access-Control-Allow-Origin': '*', 'content-type': 'application/json'}

    def test_declared_origin_overrides(self):
        variant = payload('200', '{}', headers=[{'name': 'Access-Control-Allow-Origin', 'value': 'https://app.example.com'}])

        headers = ResponseResolver.headers_for(variant)

        assert headers == {'Access-Control-Allow-Origin': 'https://app.example.com'}

    def test_framing_headers_skipped(self):
        variant = payload('200', '{}', headers=[
            {'name': 'Content-Length', 'value': '999'},
            {'name': 'Transfer-Encoding', 'value': 'chunked'}
        ])

        assert ResponseResolver.headers_for(variant) == {'Access-Control-Allow-Origin': '*'}
