"""
Test suite for ConfigLoader component
Following TDD approach with AAA pattern and descriptive naming
"""

import pytest
import tempfile
import os
from pathlib import Path
from unittest.mock import patch
from listing_adapter.config_loader import (
    ConfigLoader, APIConfig, ConfigurationError, EnvironmentError, DEFAULT_READ_MASK
)


VALID_TOML_CONTENT = """
[api]
name = "google_business_profile"

[endpoints]
account_management = "https://mybusinessaccountmanagement.googleapis.com/v1/"
business_information = "https://mybusinessbusinessinformation.googleapis.com/v1"
place_actions = "https://mybusinessplaceactions.googleapis.com/v1"
legacy_v4 = "https://mybusiness.googleapis.com/v4"

[authentication]
type = "bearer_token"
token_env = "GBP_ACCESS_TOKEN"

[pagination]
strategy = "page_token"
max_pages = 50

[rate_limits]
strategy = "fixed_interval"
interval_seconds = 1.0

[default_parameters]
region_code = "US"
language_code = "en"

[page_sizes]
reviews = 25

[legacy]
enabled = false

[logging]
log_file_name = "listing_fetcher.log"
"""


def write_temp_config(content: str) -> Path:
    with tempfile.NamedTemporaryFile(mode='w', suffix='.toml', delete=False) as f:
        f.write(content)
        return Path(f.name)


class TestConfigLoader:
    """Test suite for ConfigLoader TOML configuration loading functionality"""

    def test_load_toml_config_with_valid_file_returns_api_config(self):
        """
        Test that loading a valid TOML file returns properly populated APIConfig
        """
        # Arrange
        config_path = write_temp_config(VALID_TOML_CONTENT)

        try:
            # Act
            result = ConfigLoader.load_toml_config(config_path)

            # Assert
            assert isinstance(result, APIConfig)
            assert result.name == "google_business_profile"
            assert result.endpoints['account_management'] == \
                "https://mybusinessaccountmanagement.googleapis.com/v1"
            assert result.authentication['token_env'] == "GBP_ACCESS_TOKEN"
            assert result.pagination['max_pages'] == 50
            assert result.rate_limits['interval_seconds'] == 1.0
            assert result.region_code == "US"
            assert result.language_code == "en"
            assert result.read_mask == DEFAULT_READ_MASK
            assert result.page_sizes['reviews'] == 25
            assert 'accounts' not in result.page_sizes
            assert result.legacy_enabled is False
            assert result.logging['log_file_name'] == "listing_fetcher.log"
        finally:
            os.unlink(config_path)

    def test_load_toml_config_without_optional_sections_uses_defaults(self):
        # Arrange
        minimal = VALID_TOML_CONTENT.split("[default_parameters]")[0]
        config_path = write_temp_config(minimal)

        try:
            # Act
            result = ConfigLoader.load_toml_config(config_path)

            # Assert
            assert result.region_code == "JP"
            assert result.language_code == "ja"
            assert result.legacy_enabled is True
            assert result.page_sizes == {}
        finally:
            os.unlink(config_path)

    def test_load_toml_config_with_missing_file_raises_file_not_found_error(self):
        # Arrange
        missing_path = Path("/nonexistent/path/config.toml")

        # Act & Assert
        with pytest.raises(FileNotFoundError) as exc_info:
            ConfigLoader.load_toml_config(missing_path)

        assert "Configuration file not found" in str(exc_info.value)

    def test_load_toml_config_with_missing_sections_lists_every_missing_item(self):
        """
        Test that validation reports all missing sections and keys together
        """
        # Arrange
        incomplete = """
        [api]
        name = "google_business_profile"

        [endpoints]
        account_management = "https://example.com/v1"

        [authentication]
        type = "bearer_token"
        """
        config_path = write_temp_config(incomplete)

        try:
            # Act & Assert
            with pytest.raises(ConfigurationError) as exc_info:
                ConfigLoader.load_toml_config(config_path)

            message = str(exc_info.value)
            assert "Section [pagination]" in message
            assert "Section [rate_limits]" in message
            assert "Key 'legacy_v4' in section [endpoints]" in message
        finally:
            os.unlink(config_path)

    def test_load_toml_config_with_invalid_syntax_raises_configuration_error(self):
        # Arrange
        config_path = write_temp_config("[api\nname = ")

        try:
            # Act & Assert
            with pytest.raises(ConfigurationError) as exc_info:
                ConfigLoader.load_toml_config(config_path)

            assert "Invalid TOML syntax" in str(exc_info.value)
        finally:
            os.unlink(config_path)

    def make_config(self, authentication):
        return APIConfig(
            name="google_business_profile",
            endpoints={},
            authentication=authentication,
            pagination={'strategy': 'page_token'},
            rate_limits={'strategy': 'none'}
        )

    def test_validate_authentication_with_missing_token_env_raises_environment_error(self):
        # Arrange
        config = self.make_config({'type': 'bearer_token', 'token_env': 'GBP_TEST_MISSING_TOKEN'})

        # Act & Assert
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvironmentError) as exc_info:
                ConfigLoader.validate_authentication(config)

        assert "GBP_TEST_MISSING_TOKEN" in str(exc_info.value)

    def test_validate_authentication_with_token_present_returns_true(self):
        # Arrange
        config = self.make_config({'type': 'bearer_token', 'token_env': 'GBP_ACCESS_TOKEN'})

        # Act & Assert
        with patch.dict(os.environ, {'GBP_ACCESS_TOKEN': 'ya29.token'}):
            assert ConfigLoader.validate_authentication(config) is True

    def test_validate_authentication_without_token_env_key_checks_default_variable(self):
        # Arrange
        config = self.make_config({'type': 'bearer_token'})

        # Act & Assert
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvironmentError) as exc_info:
                ConfigLoader.validate_authentication(config)

        assert "'GBP_ACCESS_TOKEN'" in str(exc_info.value)

    def test_validate_authentication_with_static_token_ignores_environment(self):
        # Arrange
        config = self.make_config({'type': 'bearer_token', 'token': 'static-token'})

        # Act & Assert
        with patch.dict(os.environ, {}, clear=True):
            assert ConfigLoader.validate_authentication(config) is True

    def test_validate_authentication_with_empty_static_token_raises_configuration_error(self):
        # Arrange
        config = self.make_config({'type': 'bearer_token', 'token': ''})

        # Act & Assert
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader.validate_authentication(config)

        assert "'token'" in str(exc_info.value)

    def test_validate_authentication_with_unsupported_type_raises_configuration_error(self):
        # Arrange
        config = self.make_config({'type': 'api_key', 'token': 'abc'})

        # Act & Assert
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader.validate_authentication(config)

        assert "Unsupported authentication type: api_key" in str(exc_info.value)

    def test_build_credentials_with_static_token_returns_bearer_credentials(self):
        # Arrange
        config = self.make_config({'type': 'bearer_token', 'token': 'static-token'})

        # Act
        result = ConfigLoader.build_credentials(config)

        # Assert
        assert result == {'type': 'bearer_token', 'token': 'static-token'}

    def test_build_credentials_with_token_env_returns_provider_reading_current_value(self):
        """
        Test that the provider re-reads the environment so a rotated token is used
        """
        # Arrange
        config = self.make_config({'type': 'bearer_token', 'token_env': 'GBP_ACCESS_TOKEN'})

        with patch.dict(os.environ, {'GBP_ACCESS_TOKEN': 'first'}):
            # Act
            result = ConfigLoader.build_credentials(config)
            first = result['provider']()
            os.environ['GBP_ACCESS_TOKEN'] = 'rotated'
            second = result['provider']()

        # Assert
        assert result['type'] == 'token_provider'
        assert (first, second) == ('first', 'rotated')

    def test_read_token_env_with_unset_variable_raises_environment_error(self):
        # Act & Assert
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvironmentError) as exc_info:
                ConfigLoader.read_token_env('GBP_ACCESS_TOKEN')

        assert "'GBP_ACCESS_TOKEN' is not set" in str(exc_info.value)

    def test_read_token_env_with_empty_value_raises_environment_error(self):
        # Act & Assert
        with patch.dict(os.environ, {'GBP_ACCESS_TOKEN': ''}):
            with pytest.raises(EnvironmentError):
                ConfigLoader.read_token_env('GBP_ACCESS_TOKEN')

    def test_bundled_config_file_loads_successfully(self):
        """
        Test that the configuration shipped with the project is valid
        """
        # Arrange
        config_path = Path(__file__).resolve().parents[2] / 'config' / 'google_business_profile.toml'

        # Act
        result = ConfigLoader.load_toml_config(config_path)

        # Assert
        assert result.pagination['strategy'] == 'page_token'
        assert result.rate_limits['interval_seconds'] == 1.0
        assert result.page_sizes['chains'] == 500
