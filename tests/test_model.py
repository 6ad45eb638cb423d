"""
Tests for the blueprint description model

Tests building the immutable tree from a blueprint AST including:
- Status code parsing from response names
- Resource model reference detection
- Tree construction and invalid response reporting
"""

import dataclasses

import pytest

from blueprintmock.model import API, Payload, parse_status


class TestParseStatus:
    """Test reading response names as status codes."""

    @pytest.mark.parametrize('name,expected', [
        ('200', 200),
        ('404', 404),
        (' 201 ', 201),
        ('599', 599),
    ])
    def test_valid_status(self, name, expected):
        assert parse_status(name) == expected

    @pytest.mark.parametrize('name', ['OK', '', '20x', '-1', '99', '600', '1000', '2.0'])
    def test_invalid_status(self, name):
        assert parse_status(name) is None


class TestPayload:
    """Test payload construction."""

    def test_from_dict(self):
        payload = Payload.from_dict({
            'name': '404',
            'description': 'Missing',
            'headers': [{'name': 'Content-Type', 'value': 'application/json'}],
            'body': '{"err":true}',
            'schema': '{"type":"object"}'
        })

        assert payload.status == 404
        assert payload.headers[0].name == 'Content-Type'
        assert payload.headers[0].value == 'application/json'
        assert payload.schema == '{"type":"object"}'
        assert payload.uses_resource_model is False

    def test_model_reference_detected(self):
        payload = Payload.from_dict({'name': '200', 'body': '[Note][]'})

        assert payload.uses_resource_model is True

    def test_model_reference_inside_text(self):
        payload = Payload.from_dict({'name': '200', 'body': 'See [Notes Collection][] for details'})

        assert payload.uses_resource_model is True

    def test_plain_array_is_not_reference(self):
        payload = Payload.from_dict({'name': '200', 'body': '[{"id": 1}]'})

        assert payload.uses_resource_model is False

    def test_missing_fields_default(self):
        payload = Payload.from_dict(None)

        assert payload.name == ''
        assert payload.body == ''
        assert payload.headers == ()
        assert payload.status is None

    def test_payload_is_frozen(self):
        payload = Payload.from_dict({'name': '200'})

        with pytest.raises(dataclasses.FrozenInstanceError):
            payload.body = 'changed'


class TestAPI:
    """Test building the full tree."""

    def test_tree_structure(self, blueprint_ast):
        api = API.from_dict(blueprint_ast, source='widgets.json')

        assert api.name == 'Widgets API'
        assert api.source == 'widgets.json'
        assert ('HOST', 'http://api.example.com') in api.metadata
        assert len(api.resource_groups) == 1

        resources = list(api.iter_resources())
        assert [r.uri_template for r in resources] == ['/widgets', '/widgets/{id}{?fields}', '/gadgets', '/broken']

        collection = resources[0]
        assert collection.model.body == '[{"id":1},{"id":2}]'
        assert [a.method for a in collection.actions] == ['GET', 'POST']
        assert len(collection.actions[1].examples[0].responses) == 2

    def test_parameters_carried_verbatim(self, blueprint_ast):
        api = API.from_dict(blueprint_ast)
        widget = list(api.iter_resources())[1]

        assert widget.parameters[0].name == 'id'
        assert widget.parameters[0].required is True
        assert widget.parameters[0].example == '7'

    def test_method_upper_cased(self):
        api = API.from_dict({'resourceGroups': [{'resources': [
            {'uriTemplate': '/x', 'actions': [{'method': 'patch', 'examples': []}]}
        ]}]})

        assert list(api.iter_resources())[0].actions[0].method == 'PATCH'

    def test_invalid_responses(self, blueprint_ast):
        api = API.from_dict(blueprint_ast)

        invalid = api.invalid_responses()

        assert len(invalid) == 1
        resource, action, response = invalid[0]
        assert resource.uri_template == '/broken'
        assert action.method == 'GET'
        assert response.name == 'OK'
