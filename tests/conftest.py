"""Shared fixtures for the test suite."""
import os
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def aws_credentials():
    """Point boto3 at fake credentials so tests never reach AWS."""
    env_vars = {
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SECURITY_TOKEN': 'testing',
        'AWS_SESSION_TOKEN': 'testing',
        'AWS_DEFAULT_REGION': 'us-east-1'
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars
