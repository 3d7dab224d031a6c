"""Configuration management for the SPARQL query analyser."""

import os
import yaml
from typing import Dict, Any
from sparql_analyser.common.exceptions import ConfigurationError


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file and environment variables.

    Environment variables override YAML config values.

    Args:
        config_path: Path to YAML config file.
                     Defaults to SPARQL_ANALYSER_CONFIG env var or
                     'config/analyser_config.yaml'

    Returns:
        Dictionary containing merged configuration

    Raises:
        ConfigurationError: If config file is missing or invalid
    """
    if config_path is None:
        config_path = os.environ.get(
            'SPARQL_ANALYSER_CONFIG',
            'config/analyser_config.yaml'
        )

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML configuration: {e}")

    if config is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")

    config = _apply_env_overrides(config)

    _validate_config(config)

    return config


def load_prefix_dictionary(parser_config: Dict[str, Any]) -> Dict[str, str]:
    """
    Build the prefix dictionary used to recover undeclared prefixes.

    Inline `prefixes` entries win over entries read from `prefix_file`
    (a YAML or JSON mapping of prefix name to namespace IRI).

    Raises:
        ConfigurationError: If the prefix file is missing or malformed
    """
    prefixes: Dict[str, str] = {}

    prefix_file = parser_config.get('prefix_file')
    if prefix_file:
        try:
            with open(prefix_file, 'r') as f:
                loaded = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Prefix file not found: {prefix_file}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid prefix file {prefix_file}: {e}")

        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigurationError(f"Prefix file must contain a mapping: {prefix_file}")
        prefixes.update({str(k): str(v) for k, v in (loaded or {}).items()})

    prefixes.update({str(k): str(v) for k, v in (parser_config.get('prefixes') or {}).items()})

    return prefixes


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration."""

    if 'SPARQL_ANALYSER_LOG_LEVEL' in os.environ:
        config.setdefault('logging', {})['level'] = os.environ['SPARQL_ANALYSER_LOG_LEVEL']

    if 'SPARQL_ANALYSER_PREFIX_FILE' in os.environ:
        config.setdefault('parser', {})['prefix_file'] = os.environ['SPARQL_ANALYSER_PREFIX_FILE']

    if 'SPARQL_ANALYSER_OUTPUT_DIR' in os.environ:
        config.setdefault('export', {})['output_dir'] = os.environ['SPARQL_ANALYSER_OUTPUT_DIR']

    if 'SPARQL_ANALYSER_BATCH_SIZE' in os.environ:
        try:
            batch_size = int(os.environ['SPARQL_ANALYSER_BATCH_SIZE'])
        except ValueError:
            raise ConfigurationError(
                f"SPARQL_ANALYSER_BATCH_SIZE must be an integer, "
                f"got {os.environ['SPARQL_ANALYSER_BATCH_SIZE']!r}"
            )
        config.setdefault('export', {})['batch_size'] = batch_size

    if 'SPARQL_ANALYSER_CHECK_INVARIANTS' in os.environ:
        enabled = os.environ['SPARQL_ANALYSER_CHECK_INVARIANTS'].lower() == 'true'
        config.setdefault('statistics', {})['check_invariants'] = enabled

    return config


def _validate_config(config: Dict[str, Any]) -> None:
    """
    Validate required configuration fields.

    Raises:
        ConfigurationError: If required fields are missing
    """
    required_sections = ['service', 'logging']

    for section in required_sections:
        if section not in config:
            raise ConfigurationError(f"Missing required config section: {section}")

    service_config = config['service']
    if 'name' not in service_config:
        raise ConfigurationError("Missing required field: service.name")
    if 'version' not in service_config:
        raise ConfigurationError("Missing required field: service.version")

    logging_config = config['logging']
    if 'level' not in logging_config:
        raise ConfigurationError("Missing required field: logging.level")

    export_config = config.get('export', {})
    batch_size = export_config.get('batch_size', 1)
    if not isinstance(batch_size, int) or batch_size < 1:
        raise ConfigurationError(f"export.batch_size must be a positive integer, got {batch_size!r}")
