"""
blueprintmock - mock HTTP server for API Blueprints

Serves example responses from API Blueprint descriptions and lets a control
client pick between success and error responses while requests wait.
"""

__version__ = '1.0.0'
