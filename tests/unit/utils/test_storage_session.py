"""
Tests for Object Store Session Factory

Tests boto3 session and client creation for the GCS S3-interoperable endpoint.
"""

from unittest.mock import patch, MagicMock

from botocore.config import Config

from focus_sync.utils.aws_constants import (
    DEFAULT_GCS_ENDPOINT_URL,
    GCS_PROJECT_HEADER,
    GCS_SIGNING_REGION,
)
from focus_sync.utils.aws_session import (
    _project_header_hook,
    create_aws_session,
    create_storage_client,
    get_default_retry_config,
)


class TestCreateAwsSession:
    """Tests for create_aws_session function"""

    def test_creates_session_with_signing_region(self):
        """Test that session is created without explicit credentials"""
        with patch('focus_sync.utils.aws_session.boto3.Session') as mock_session:
            mock_session.return_value = MagicMock()

            create_aws_session()

            mock_session.assert_called_once()
            call_kwargs = mock_session.call_args[1]
            assert call_kwargs['region_name'] == GCS_SIGNING_REGION
            assert 'aws_access_key_id' not in call_kwargs
            assert 'aws_secret_access_key' not in call_kwargs
            assert 'profile_name' not in call_kwargs

    def test_creates_session_with_profile_name(self):
        """Test that session can use a profile name for local development"""
        with patch('focus_sync.utils.aws_session.boto3.Session') as mock_session:
            mock_session.return_value = MagicMock()

            create_aws_session(profile_name='gcs-hmac')

            assert mock_session.call_args[1]['profile_name'] == 'gcs-hmac'


class TestGetDefaultRetryConfig:
    """Tests for get_default_retry_config function"""

    def test_returns_config(self):
        config = get_default_retry_config()

        assert isinstance(config, Config)
        assert config.retries == {'max_attempts': 3, 'mode': 'adaptive'}
        assert config.signature_version == 's3v4'

    def test_custom_values(self):
        config = get_default_retry_config(max_attempts=5, mode='standard', max_pool_connections=20)

        assert config.retries == {'max_attempts': 5, 'mode': 'standard'}
        assert config.max_pool_connections == 20


class TestCreateStorageClient:
    """Tests for create_storage_client function"""

    def test_uses_default_endpoint(self):
        with patch('focus_sync.utils.aws_session.boto3.Session') as mock_session:
            session = MagicMock()
            mock_session.return_value = session

            create_storage_client()

            call_args = session.client.call_args
            assert call_args[0][0] == 's3'
            assert call_args[1]['endpoint_url'] == DEFAULT_GCS_ENDPOINT_URL
            assert isinstance(call_args[1]['config'], Config)

    def test_custom_endpoint_and_config(self):
        config = get_default_retry_config(max_attempts=1)
        with patch('focus_sync.utils.aws_session.boto3.Session') as mock_session:
            session = MagicMock()
            mock_session.return_value = session

            create_storage_client(endpoint_url='http://localhost:4443', config=config)

            call_kwargs = session.client.call_args[1]
            assert call_kwargs['endpoint_url'] == 'http://localhost:4443'
            assert call_kwargs['config'] is config

    def test_registers_project_header_hook(self):
        with patch('focus_sync.utils.aws_session.boto3.Session') as mock_session:
            session = MagicMock()
            mock_session.return_value = session

            client = create_storage_client(project_id='finops-test')

            client.meta.events.register.assert_called_once()
            event_name = client.meta.events.register.call_args[0][0]
            assert event_name == 'before-sign.s3'

    def test_no_hook_without_project(self):
        with patch('focus_sync.utils.aws_session.boto3.Session') as mock_session:
            session = MagicMock()
            mock_session.return_value = session

            client = create_storage_client()

            client.meta.events.register.assert_not_called()


class TestProjectHeaderHook:
    """The hook sets the GCS project header on outgoing requests"""

    def test_sets_header(self):
        request = MagicMock()
        request.headers = {}

        _project_header_hook('finops-test')(request=request)

        assert request.headers[GCS_PROJECT_HEADER] == 'finops-test'
