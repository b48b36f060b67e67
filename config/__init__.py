import os
import json
from pathlib import Path
from dotenv import load_dotenv
from .logging_config import setup_app_logging
import logging

# Load environment variables from .env file
load_dotenv()

# Get the config directory path (where this file is located)
CONFIG_DIR = Path(__file__).parent

PROJECT_ROOT = CONFIG_DIR.parent

# Load configuration from config.json
config_path = CONFIG_DIR / 'config.json'
with open(config_path, 'r', encoding='utf-8') as f:
    CONFIG = json.load(f)

CONFIG['project_root'] = str(PROJECT_ROOT)

if 'paths' not in CONFIG:
    CONFIG['paths'] = {}

# Resolve the catalog path against the project root unless it is already absolute
catalog_path = Path(CONFIG['paths'].get('catalog', 'data/cursos.json'))
if not catalog_path.is_absolute():
    catalog_path = PROJECT_ROOT / catalog_path
CONFIG['paths']['catalog_full_path'] = str(catalog_path)

# Environment variables (secrets are never read from config.json)
ENV = {
    'NEBIUS_API_KEY': os.getenv('NEBIUS_API_KEY'),
    'LLM_API_KEY': os.getenv('LLM_API_KEY'),
    'OPENAI_API_KEY': os.getenv('OPENAI_API_KEY'),
}

SUPPORTED_MODES = ('grounded', 'notice')
SUPPORTED_RULES_VARIANTS = ('status', 'fields')

# --- Helper function to get config value from CONFIG or environment variable ---
def get_config_value(json_keys: list, env_var_name: str, default_value: any = None):
    """
    Retrieves a configuration value.
    Priority:
    1. Environment variable (if env_var_name is provided and variable is set).
    2. Value from CONFIG dictionary (using json_keys).
    3. default_value.
    """
    if env_var_name:
        env_value = os.getenv(env_var_name)
        if env_value is not None:
            # Attempt to match type of default_value if it's int or bool
            if isinstance(default_value, bool):
                if env_value.lower() == 'true': return True
                if env_value.lower() == 'false': return False
            elif isinstance(default_value, int):
                try:
                    return int(env_value)
                except ValueError:
                    pass # Fall through to JSON or default if not a valid int
            return env_value

    current_level = CONFIG
    try:
        for key in json_keys:
            current_level = current_level[key]
        if isinstance(current_level, (str, int, bool, float, list, dict)):
             return current_level
    except (KeyError, TypeError):
        pass

    return default_value

# --- Assistant behaviour ---
CONFIG['assistant'] = CONFIG.get('assistant', {})
CONFIG['assistant']['mode'] = get_config_value(['assistant', 'mode'], 'ASSISTANT_MODE', 'grounded').strip().lower()
CONFIG['assistant']['rules_variant'] = get_config_value(
    ['assistant', 'rules_variant'], 'ASSISTANT_RULES_VARIANT', 'status'
).strip().lower()

def validate_config():
    """Validate that the required configuration sections and choices are present.

    API keys are checked later, when the model client is built, so that the package
    stays importable in tests and in notice mode.
    """
    required_sections = ['llm', 'assistant', 'prompt', 'sessions']
    for section in required_sections:
        if section not in CONFIG:
            raise ValueError(f"Missing configuration section: {section}")

    if CONFIG['assistant']['mode'] not in SUPPORTED_MODES:
        raise ValueError(
            f"Unsupported assistant mode: {CONFIG['assistant']['mode']} "
            f"(expected one of {', '.join(SUPPORTED_MODES)})"
        )
    if CONFIG['assistant']['rules_variant'] not in SUPPORTED_RULES_VARIANTS:
        raise ValueError(
            f"Unsupported rules variant: {CONFIG['assistant']['rules_variant']} "
            f"(expected one of {', '.join(SUPPORTED_RULES_VARIANTS)})"
        )

# Validate configuration on module import
validate_config()

# --- System Rules Loading ---
# One text file per rules variant; the selected one is surfaced verbatim to the model.
rules_path = CONFIG_DIR / f"system_rules_{CONFIG['assistant']['rules_variant']}.txt"
try:
    with open(rules_path, 'r', encoding='utf-8') as f:
        CONFIG['system_rules'] = f.read().strip()
except FileNotFoundError:
    raise FileNotFoundError(
        f"System rules file not found: {rules_path}\n"
        f"Please ensure system_rules_{CONFIG['assistant']['rules_variant']}.txt exists in the config directory."
    )

# --- Logging Configuration ---
# Environment variables take precedence over config.json.
CONFIG['logging'] = {
    'level': get_config_value(['logging', 'level'], 'LOG_LEVEL', 'INFO'),
    'file_path': get_config_value(['logging', 'file_path'], 'LOG_FILE_PATH', ''),
    'max_bytes': get_config_value(['logging', 'max_bytes'], 'LOG_MAX_BYTES', 5*1024*1024), # 5MB
    'backup_count': get_config_value(['logging', 'backup_count'], 'LOG_BACKUP_COUNT', 3),
    'format': get_config_value(
        ['logging', 'format'],
        'LOG_FORMAT',
        '%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s'
    ),
    'date_format': get_config_value(
        ['logging', 'date_format'],
        'LOG_DATE_FORMAT',
        '%Y-%m-%d %H:%M:%S'
    )
}

setup_app_logging(config=CONFIG.get('logging'))

config_init_logger = logging.getLogger(__name__)
config_init_logger.info(
    "[config_init] Configuration loaded (mode=%s, rules_variant=%s)",
    CONFIG['assistant']['mode'],
    CONFIG['assistant']['rules_variant'],
)
