"""
ConfigLoader module for loading and validating TOML configuration files
"""

import os
import tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Any

class ConfigurationError(Exception):
    """Raised when configuration is invalid or incomplete"""
    pass


class EnvironmentError(Exception):
    """Raised when required environment variables are missing"""
    pass


DEFAULT_TOKEN_ENV = 'GBP_ACCESS_TOKEN'

DEFAULT_READ_MASK = (
    'name,title,phoneNumbers,categories,storefrontAddress,websiteUri,regularHours,'
    'specialHours,serviceArea,latlng,openInfo,metadata,profile,relationshipData,'
    'moreHours,serviceItems'
)

DEFAULT_PAGE_SIZES = {
    'accounts': 20,
    'locations': 100,
    'location_search': 10,
    'chains': 500,
    'local_posts': 100,
    'reviews': 50
}


@dataclass
class APIConfig:
    """Configuration data class for the listing fetcher from TOML file"""
    name: str
    endpoints: Dict[str, str]
    authentication: Dict[str, Any]
    pagination: Dict[str, Any]
    rate_limits: Dict[str, Any]
    default_parameters: Dict[str, Any] = field(default_factory=dict)
    page_sizes: Dict[str, int] = field(default_factory=dict)
    legacy: Dict[str, Any] = field(default_factory=dict)
    logging: Dict[str, Any] = field(default_factory=dict)

    @property
    def region_code(self) -> str:
        return self.default_parameters.get('region_code', 'JP')

    @property
    def language_code(self) -> str:
        return self.default_parameters.get('language_code', 'ja')

    @property
    def read_mask(self) -> str:
        return self.default_parameters.get('read_mask', DEFAULT_READ_MASK)

    @property
    def legacy_enabled(self) -> bool:
        return bool(self.legacy.get('enabled', True))


class ConfigLoader:
    """Loads and validates TOML configuration files"""

    # Required configuration sections and their mandatory keys
    REQUIRED_SECTIONS = {
        'api': ['name'],
        'endpoints': ['account_management', 'business_information', 'place_actions', 'legacy_v4'],
        'authentication': ['type'],
        'pagination': ['strategy'],
        'rate_limits': ['strategy']
    }

    SUPPORTED_AUTHENTICATION_TYPES = {'bearer_token'}

    @staticmethod
    def load_toml_config(config_path: Path) -> APIConfig:
        """
        Load API configuration from TOML file

        Args:
            config_path: Path to the TOML configuration file

        Returns:
            APIConfig object with all configuration data

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If TOML is invalid or required configuration is missing
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'rb') as f:
                config_data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {config_path}: {e}") from e

        # Validate required sections and keys
        ConfigLoader._validate_required_sections(config_data)

        return APIConfig(
            name=config_data['api']['name'],
            endpoints={key: str(value).rstrip('/') for key, value in config_data['endpoints'].items()},
            authentication=config_data['authentication'],
            pagination=config_data['pagination'],
            rate_limits=config_data['rate_limits'],
            default_parameters=config_data.get('default_parameters', {}),
            page_sizes=config_data.get('page_sizes', {}),
            legacy=config_data.get('legacy', {}),
            logging=config_data.get('logging', {})
        )

    @staticmethod
    def _validate_required_sections(config_data: Dict[str, Any]) -> None:
        """
        Validate that all required configuration sections and keys are present

        Args:
            config_data: Parsed TOML configuration data

        Raises:
            ConfigurationError: If any required section or key is missing
        """
        missing_items = []

        for section_name, required_keys in ConfigLoader.REQUIRED_SECTIONS.items():
            if section_name not in config_data:
                missing_items.append(f"Section [{section_name}]")
            else:
                section_data = config_data[section_name]
                for key in required_keys:
                    if key not in section_data:
                        missing_items.append(f"Key '{key}' in section [{section_name}]")

        if missing_items:
            raise ConfigurationError(
                f"Missing required configuration items: {', '.join(missing_items)}"
            )

    @staticmethod
    def validate_authentication(config: APIConfig) -> bool:
        """
        Validate that the [authentication] section can supply a bearer token

        A static 'token' is used as-is; otherwise the token is read from the
        environment variable named by 'token_env' (GBP_ACCESS_TOKEN by default).

        Args:
            config: APIConfig object to validate

        Returns:
            True if a token is available

        Raises:
            ConfigurationError: If the type is unsupported or the static token is empty
            EnvironmentError: If the token environment variable is unset or empty
        """
        auth_config = config.authentication
        auth_type = auth_config.get('type')

        if auth_type not in ConfigLoader.SUPPORTED_AUTHENTICATION_TYPES:
            raise ConfigurationError(f"Unsupported authentication type: {auth_type}")

        if 'token' in auth_config:
            if not auth_config['token']:
                raise ConfigurationError("Key 'token' in section [authentication] is empty")
            return True

        ConfigLoader.read_token_env(auth_config.get('token_env', DEFAULT_TOKEN_ENV))
        return True

    @staticmethod
    def build_credentials(config: APIConfig) -> Dict[str, Any]:
        """
        Translate the [authentication] section into HTTPClient credentials

        Args:
            config: APIConfig object holding the authentication section

        Returns:
            Credentials dictionary accepted by HTTPClient.authenticate

        Raises:
            ConfigurationError: If the authentication section is unusable
            EnvironmentError: If the token environment variable is unset or empty
        """
        ConfigLoader.validate_authentication(config)
        auth_config = config.authentication

        if 'token' in auth_config:
            return {'type': 'bearer_token', 'token': auth_config['token']}

        # Re-read on every request so rotated tokens are picked up
        env_var_name = auth_config.get('token_env', DEFAULT_TOKEN_ENV)
        return {
            'type': 'token_provider',
            'provider': lambda: ConfigLoader.read_token_env(env_var_name)
        }

    @staticmethod
    def read_token_env(env_var_name: str) -> str:
        """
        Read a bearer token from the environment

        Args:
            env_var_name: Name of the environment variable

        Returns:
            Non-empty token value

        Raises:
            EnvironmentError: If the variable is unset or empty
        """
        value = os.getenv(env_var_name)
        if not value:
            raise EnvironmentError(f"Environment variable '{env_var_name}' is not set or empty")
        return value
