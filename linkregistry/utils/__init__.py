from linkregistry.utils.config import app_env, app_name, app_prefix, load_config, registry_settings
from linkregistry.utils.helpers import base_url, get_short_url, require_environment, guarantee_500_response
from linkregistry.utils.shortener import generate_shortcode, allocate_shortcode
from linkregistry.utils.logging import initialize_logging


__all__ = [
    'generate_shortcode',
    'allocate_shortcode',
    'app_env',
    'app_name',
    'app_prefix',
    'load_config',
    'registry_settings',
    'base_url',
    'get_short_url',
    'require_environment',
    'guarantee_500_response',
    'initialize_logging',
]
