from palladium.utils.config import app_env, app_name, app_prefix, load_config
from palladium.utils.helpers import require_environment, guarantee_500_response, get_header
from palladium.utils.logging import initialize_logging
from palladium.utils.runtime import running_locally


__all__ = [
    'app_env',
    'app_name',
    'app_prefix',
    'load_config',
    'require_environment',
    'guarantee_500_response',
    'get_header',
    'initialize_logging',
    'running_locally',
]
