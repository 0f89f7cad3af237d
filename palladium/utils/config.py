"""Utility functions for application configuration management.

This module provides a standardized interface for Lambda functions to
access configuration data stored in **AWS AppConfig**. Each environment
(`APP_ENV`) has a dedicated AppConfig *Environment* within the shared
AppConfig *Application* identified by `APP_NAME`. Configuration data is
stored as a JSON document under a configuration profile (typically
`backend-config`) and deployed to the corresponding environment.

The configuration JSON follows this structure:

    {
        "build": 7,
        "active_backend": "redis",
        "configs": {
            "directives": {
                "redis": { "host": "...", "port": 6379, "db": 0, "socket_timeout": 2 },
                "memory": { "timeout": 1.0 }
            },
            "redirect": {
                "redis": { ... }
            },
            "health": {
                "redis": { ... }
            }
        }
    }

Each Lambda loads its own section (e.g., `"redirect"`) for the active backend.

Functions:
    app_env() -> str
        Return the current application environment (`APP_ENV`) value,
        defaulting to `'local'`.

    app_name() -> str | None
        Return the application name (`APP_NAME`), or None if not set.

    app_prefix() -> str | None
        Return application prefix for DAOs, or None if `APP_NAME` is not set.

    load_config(function_name: str) -> dict
        Load configuration for a given Lambda from AWS AppConfig and
        return it as a Python dictionary. In SAM, load configuration
        from a local AppConfig agent.

Example:
    Typical usage inside a Lambda handler:

        >>> from palladium.utils.config import load_config
        >>> config = load_config('redirect')
        >>> print(config['redis']['host'])
        redis-15501.host.docker.internal
"""

import os
import json
import functools
import logging
import urllib.parse
import urllib.request
from collections.abc import Callable

import boto3

from palladium.constants import ENV
from palladium.utils.helpers import require_environment
from palladium.utils.runtime import running_locally


logger = logging.getLogger(__name__)


def app_env() -> str:
    """Return the current application environment by reading 'APP_ENV'

    Returns:
        str:
            Value of `APP_ENV` environment variable, `'local'` by default.

    Example:
        >>> os.environ['APP_ENV'] = 'dev'
        >>> app_env()
        'dev'
    """
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    """Return the current application name by reading 'APP_NAME'

    Returns:
        str:
            Value of `APP_NAME` environment variable.
            None if variable is not set.
    """
    return os.environ.get(ENV.App.APP_NAME)


def app_prefix() -> str | None:
    """Return application prefix for DAOs

    Returns:
        str: app prefix as <app name>:<app env>.
             None if APP_NAME is not set.

    Example:
        >>> os.environ['APP_NAME'] = 'palladium'
        >>> os.environ['APP_ENV'] = 'local'
        >>> app_prefix()
        'palladium:local'
    """
    return None if app_name() is None else f'{app_name()}:{app_env()}'


def _select_backend_config(document: dict, function_name: str) -> dict:
    backend = document['active_backend']
    return {backend: document['configs'][function_name][backend]}


def _validate_appconfig_agent_url(url: str | None) -> str:
    if not url:
        return ''
    components = urllib.parse.urlparse(url)
    if components.scheme not in {'http', 'https'}:
        raise ValueError(f'Bad scheme {url}')
    if components.hostname not in {'localhost', '127.0.0.1', 'host.docker.internal'}:
        raise ValueError(f'Bad host {url}')
    if components.port not in {2772, None}:
        raise ValueError(f'Bad port {url}')
    return url


def _sam_load_local_appconfig(func: Callable[[str], dict]) -> Callable[[str], dict]:
    """Decorator: load AppConfig from a local AppConfig Agent when running under SAM

    Behavior:
        - If the application is running locally and `APPCONFIG_AGENT_URL` is set
          to a safe local URL, fetch the app configuration JSON from the local AppConfig agent.
        - Else, call the wrapped function (which pulls from AWS AppConfig via boto3).

    Environment variables used:
        APPCONFIG_AGENT_URL     – Base URL of the local AppConfig Agent (e.g., http://host.docker.internal:2772).
        APPCONFIG_PROFILE_NAME  – Optional profile name (default: "backend-config").
    """

    @functools.wraps(func)
    def wrapper(function_name: str, *args, **kwargs) -> dict:
        agent_url = _validate_appconfig_agent_url(os.getenv(ENV.AppConfig.AGENT_URL))
        if not running_locally() or not agent_url:
            return func(function_name, *args, **kwargs)

        profile_name = os.getenv(ENV.AppConfig.PROFILE_NAME, 'backend-config')
        url = f'{agent_url}/applications/{app_name()}/environments/{app_env()}/configurations/{profile_name}'

        logger.debug('Trying to load AppConfig from local agent.', extra={'agentUrl': url, 'functionName': function_name})
        with urllib.request.urlopen(url, timeout=5) as r:  # noqa: S310
            document = json.load(r)

        logger.debug('Loaded AppConfig from local agent.', extra={'functionName': function_name, 'build': document.get('build')})
        return _select_backend_config(document, function_name)

    return wrapper


@_sam_load_local_appconfig
@require_environment(ENV.AppConfig.APP_ID, ENV.AppConfig.ENV_ID, ENV.AppConfig.PROFILE_ID)
def load_config(function_name: str) -> dict:
    """Load configuration for a given Lambda from AWS AppConfig

    Fetches the AppConfig JSON once and returns the active backend's section
    for the requested Lambda function (e.g., 'directives', 'redirect').

    Environment variables required:
        APPCONFIG_APP_ID       – AppConfig Application ID
        APPCONFIG_ENV_ID       – AppConfig Environment ID
        APPCONFIG_PROFILE_ID   – AppConfig Configuration Profile ID

    Args:
        function_name (str):
            Name of the Lambda (e.g., "directives" or "redirect").

    Returns:
        dict: {<active backend>: <backend config>} for the lambda.

    Example:
        >>> app_config = load_config('directives')
        >>> app_config['redis']['host']
        'redis-15501.host.docker.internal'
    """
    logger.debug('Trying to load AppConfig from AWS AppConfig.', extra={'functionName': function_name})

    appconfig = boto3.client('appconfigdata')

    # Start an AppConfig data session
    session_token = appconfig.start_configuration_session(
        ApplicationIdentifier=os.environ[ENV.AppConfig.APP_ID],
        EnvironmentIdentifier=os.environ[ENV.AppConfig.ENV_ID],
        ConfigurationProfileIdentifier=os.environ[ENV.AppConfig.PROFILE_ID],
    )['InitialConfigurationToken']

    # Fetch the configuration
    response = appconfig.get_latest_configuration(ConfigurationToken=session_token)
    content = response['Configuration'].read()
    document = json.loads(content.decode('utf-8'))

    logger.debug('Loaded AppConfig from AWS AppConfig.', extra={'functionName': function_name, 'build': document.get('build')})
    return _select_backend_config(document, function_name)
