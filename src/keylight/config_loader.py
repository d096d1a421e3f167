"""
Configuration loader for the Key Light Control Server
Loads and validates configuration from YAML files
"""

import yaml
import logging
from typing import Dict, Any, List
from pathlib import Path
from datetime import datetime
import pytz

from .const import (
    CONNECT_TIMEOUT,
    DEFAULT_PORT,
    DISCOVERY_TIMEOUT,
    PARTIAL_ACCEPT,
    PARTIAL_POLICIES,
    REQUEST_TIMEOUT,
    RESOLVE_TIMEOUT_MS,
    SERVICE_TYPE,
)

logger = logging.getLogger(__name__)

def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file with validation
    """
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.error(f"Configuration file not found: {config_path}")
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        config = prepare_config(config)

        logger.info(f"Configuration loaded from {config_path}")
        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise

def prepare_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Validate an already-parsed configuration and fill in defaults"""
    _validate_config(config)
    return _apply_defaults(config)

def parse_device_count(value: Any) -> int:
    """Parse the string-encoded number of Key Lights to wait for"""
    try:
        count = int(str(value).strip(), 10)
    except ValueError:
        raise ValueError(f"lights.count must be an integer, got {value!r}")
    if count < 1:
        raise ValueError(f"lights.count must be at least 1, got {count}")
    return count

def parse_static_ips(value: str) -> List[str]:
    """Split a comma-separated address list, trimming whitespace and dropping empty entries"""
    ips = [ip.strip() for ip in str(value).split(',')]
    ips = [ip for ip in ips if ip]
    if not ips:
        raise ValueError(f"lights.ips contains no addresses: {value!r}")
    return ips

def _validate_config(config: Dict) -> None:
    """Validate that required configuration sections exist"""
    if not isinstance(config, dict):
        raise ValueError("Configuration root must be a mapping")

    if 'lights' not in config:
        raise ValueError("Missing required configuration section: lights")

    # Validate lights section
    lights = config['lights'] or {}
    if lights.get('ips'):
        parse_static_ips(lights['ips'])
    else:
        # Count is only needed when falling back to mDNS discovery
        parse_device_count(lights.get('count', '1'))

    port = lights.get('port', DEFAULT_PORT)
    if not isinstance(port, int) or not 0 < port < 65536:
        raise ValueError(f"lights.port must be a valid TCP port, got {port!r}")

    # Validate discovery section
    discovery = config.get('discovery') or {}
    policy = discovery.get('partial_policy', PARTIAL_ACCEPT)
    if policy not in PARTIAL_POLICIES:
        raise ValueError(f"discovery.partial_policy must be one of {', '.join(PARTIAL_POLICIES)}, got {policy!r}")

    timeout = discovery.get('timeout_seconds', DISCOVERY_TIMEOUT)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError(f"discovery.timeout_seconds must be positive, got {timeout!r}")

    # Validate http section
    http = config.get('http') or {}
    for key in ('request_timeout', 'connect_timeout'):
        value = http.get(key, 1)
        if not isinstance(value, (int, float)) or value <= 0:
            raise ValueError(f"http.{key} must be positive, got {value!r}")

def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""

    # Lights defaults
    config['lights'] = config['lights'] or {}
    lights_defaults = {
        'count': '1',
        'ips': '',
        'port': DEFAULT_PORT
    }
    for key, default_value in lights_defaults.items():
        if config['lights'].get(key) is None:
            config['lights'][key] = default_value

    # Discovery defaults
    if not config.get('discovery'):
        config['discovery'] = {}
    discovery_defaults = {
        'service_type': SERVICE_TYPE,
        'timeout_seconds': DISCOVERY_TIMEOUT,
        'resolve_timeout_ms': RESOLVE_TIMEOUT_MS,
        'partial_policy': PARTIAL_ACCEPT
    }
    for key, default_value in discovery_defaults.items():
        if key not in config['discovery']:
            config['discovery'][key] = default_value

    # HTTP defaults
    if not config.get('http'):
        config['http'] = {}
    http_defaults = {
        'request_timeout': REQUEST_TIMEOUT,
        'connect_timeout': CONNECT_TIMEOUT
    }
    for key, default_value in http_defaults.items():
        if key not in config['http']:
            config['http'][key] = default_value

    # API defaults
    if not config.get('api'):
        config['api'] = {}
    api_defaults = {
        'host': '0.0.0.0',
        'port': 8000
    }
    for key, default_value in api_defaults.items():
        if key not in config['api']:
            config['api'][key] = default_value

    # Logging defaults
    if not config.get('logging'):
        config['logging'] = {}
    logging_defaults = {
        'level': 'INFO',
        'file': 'logs/keylight_server.log',
        'console_output': True,
        'timezone': 'UTC'
    }
    for key, default_value in logging_defaults.items():
        if key not in config['logging']:
            config['logging'][key] = default_value

    return config


class TimezoneFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured timezone"""

    def __init__(self, fmt=None, tz_name: str = 'UTC'):
        super().__init__(fmt)
        self.tz = pytz.timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        if datefmt:
            return dt.strftime(datefmt)
        else:
            # Default format: YYYY-MM-DD HH:MM:SS TZ
            return dt.strftime('%Y-%m-%d %H:%M:%S %Z')

def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration with timezone-aware timestamps"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')
    tz_name = log_config.get('timezone', 'UTC')

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = TimezoneFormatter(log_format, tz_name)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    # Console handler
    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    # File handler
    log_file = log_config.get('file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logger.info(f"Logging configured: level={level}, timezone={tz_name}, console={log_config.get('console_output', True)}, file={log_file}")

def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    return {
        "lights": {
            "count": "2",
            "ips": "",
            "port": DEFAULT_PORT
        },
        "discovery": {
            "service_type": SERVICE_TYPE,
            "timeout_seconds": DISCOVERY_TIMEOUT,
            "resolve_timeout_ms": RESOLVE_TIMEOUT_MS,
            "partial_policy": PARTIAL_ACCEPT
        },
        "http": {
            "request_timeout": REQUEST_TIMEOUT,
            "connect_timeout": CONNECT_TIMEOUT
        },
        "api": {
            "host": "0.0.0.0",
            "port": 8000
        },
        "logging": {
            "level": "INFO",
            "file": "logs/keylight_server.log",
            "console_output": True,
            "timezone": "America/New_York"
        }
    }
