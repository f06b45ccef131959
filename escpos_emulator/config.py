# Configuration for the ESC/POS receipt emulator
# config.json values override the defaults below

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .codepages import Codepage, codepage_from_name

logger = logging.getLogger(__name__)

CONFIG_FILE = Path(__file__).resolve().parent.parent / 'config.json'

DEFAULT_CONFIG: Dict[str, Any] = {
    'enable_tcp': True,
    'tcp_host': '0.0.0.0',
    'tcp_port': 9100,
    'enable_serial': True,
    'serial_port': 'COM2',
    'serial_baudrate': 9600,
    'serial_timeout_ms': 500,
    'output_dir': 'receipts_output',
    'default_codepage': 'windows-1252',
    'output_codepage': 'windows-1251',
    'sound_enabled': True,
    'sound_cooldown_ms': 400,
    'webhook_url': None,
    'api_key': None,
    'log_level': 'INFO',
    'log_file': None,
    'log_max_bytes': 5 * 1024 * 1024,
    'log_backup_count': 5,
}


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load config.json (if present) on top of the defaults"""
    config = dict(DEFAULT_CONFIG)
    path = Path(config_path) if config_path else CONFIG_FILE
    if path.exists():
        with open(path, encoding='utf-8') as f:
            overrides = json.load(f)
        unknown = set(overrides) - set(DEFAULT_CONFIG)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ', '.join(sorted(unknown)))
        config.update({k: v for k, v in overrides.items() if k in DEFAULT_CONFIG})
    return config


def configured_codepage(config: Dict[str, Any], key: str) -> Codepage:
    """Codepage named by a config key; raises ValueError for unsupported names"""
    return codepage_from_name(config[key])
