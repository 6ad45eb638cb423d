"""Shared fixtures for blueprintmock tests."""

import json

import pytest

from blueprintmock.model import API


def widgets_ast():
    """Blueprint AST covering single, multi-variant and model-reference actions."""
    return {
        '_version': '4.0',
        'name': 'Widgets API',
        'description': '',
        'metadata': [{'name': 'FORMAT', 'value': '1A'}, {'name': 'HOST', 'value': 'http://api.example.com'}],
        'resourceGroups': [
            {
                'name': 'Widgets',
                'description': '',
                'resources': [
                    {
                        'name': 'Widget Collection',
                        'uriTemplate': '/widgets',
                        'model': {'name': '', 'body': '[{"id":1},{"id":2}]'},
                        'actions': [
                            {
                                'name': 'List Widgets',
                                'method': 'GET',
                                'examples': [{
                                    'responses': [{
                                        'name': '200',
                                        'headers': [{'name': 'Content-Type', 'value': 'application/json'}],
                                        'body': '{"ok":true}'
                                    }]
                                }]
                            },
                            {
                                'name': 'Create Widget',
                                'method': 'POST',
                                'examples': [{
                                    'responses': [
                                        {'name': '201', 'body': '{"created":true}'},
                                        {'name': '422', 'body': '{"invalid":true}'}
                                    ]
                                }]
                            }
                        ]
                    },
                    {
                        'name': 'Widget',
                        'uriTemplate': '/widgets/{id}{?fields}',
                        'parameters': [{'name': 'id', 'type': 'number', 'required': True, 'example': '7'}],
                        'actions': [
                            {
                                'name': 'Get Widget',
                                'method': 'GET',
                                'examples': [{
                                    'responses': [
                                        {'name': '200', 'body': '{"ok":true}'},
                                        {'name': '404', 'body': '{"err":true}'}
                                    ]
                                }]
                            },
                            {
                                'name': 'Delete Widget',
                                'method': 'DELETE',
                                'examples': [{'responses': [{'name': '204', 'body': ''}]}]
                            }
                        ]
                    },
                    {
                        'name': 'Gadgets',
                        'uriTemplate': '/gadgets',
                        'model': {'name': 'Gadget', 'body': '[{"gadget":1}]'},
                        'actions': [{
                            'method': 'GET',
                            'examples': [{'responses': [{'name': '200', 'body': '[Gadget][]'}]}]
                        }]
                    },
                    {
                        'name': 'Broken',
                        'uriTemplate': '/broken',
                        'actions': [{
                            'method': 'GET',
                            'examples': [{'responses': [{'name': 'OK', 'body': 'fine'}]}]
                        }]
                    }
                ]
            }
        ]
    }


@pytest.fixture
def blueprint_ast():
    return widgets_ast()


@pytest.fixture
def apis():
    return [API.from_dict(widgets_ast(), source='widgets.json')]


@pytest.fixture
def blueprint_dir(tmp_path):
    """Directory holding the widgets blueprint as a JSON AST."""
    (tmp_path / 'widgets.json').write_text(json.dumps(widgets_ast()), encoding='utf-8')
    return tmp_path
