import json
import base64
import binascii
import logging
from typing import Any

from palladium.models import DirectiveAuth
from palladium.directive_store import DirectiveStore
from palladium.dao import directive_dao
from palladium.dao.exceptions import DirectiveNotFoundError
from palladium.exceptions import DirectiveUnauthorizedError, DirectiveExhaustedError
from palladium.utils import load_config, app_prefix
from palladium.utils.helpers import guarantee_500_response, handle_data_store_error, get_header
from palladium.lambdas.redirect.constants import (
    MISSING_DIRECTIVE_ID,
    MALFORMED_AUTHORIZATION,
    DIRECTIVE_NOT_FOUND,
    DIRECTIVE_UNAUTHORIZED,
    DIRECTIVE_EXHAUSTED,
    REDIRECT_SUCCESS,
    WWW_AUTHENTICATE,
)


logger = logging.getLogger(__name__)


class MalformedAuthorizationError(ValueError):
    """Raised when an Authorization header isn't valid HTTP Basic credentials."""

    pass


def response_400(message: str | None = None, error_code: str | None = None) -> dict:
    base = 'Bad Request'
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    return {
        'statusCode': 400,
        'body': json.dumps(body),
    }


def response_401() -> dict:
    return {
        'statusCode': 401,
        'headers': {'WWW-Authenticate': WWW_AUTHENTICATE},
        'body': json.dumps({'message': 'Unauthorized', 'errorCode': DIRECTIVE_UNAUTHORIZED}),
    }


def response_404(message: str | None = None) -> dict:
    base = 'Not Found'
    body = {'message': base if not message else f'{base} ({message})', 'errorCode': DIRECTIVE_NOT_FOUND}
    return {
        'statusCode': 404,
        'body': json.dumps(body),
    }


def response_410(message: str | None = None) -> dict:
    base = 'Gone'
    body = {'message': base if not message else f'{base} ({message})', 'errorCode': DIRECTIVE_EXHAUSTED}
    return {
        'statusCode': 410,
        'body': json.dumps(body),
    }


def response_307(*, location: str) -> dict:
    return {
        'statusCode': 307,
        'headers': {
            'Location': location,
            'Cache-Control': 'no-store',
        },
        'body': json.dumps({}),  # no body needed for redirects
    }


def parse_basic_auth(header: str | None) -> DirectiveAuth | None:
    """Decode an `Authorization: Basic base64(key:secret)` header

    The decoded value is split on the first ':' only, so secrets may contain colons.

    Returns:
        DirectiveAuth | None: credentials, or None if no header was sent.

    Raises:
        MalformedAuthorizationError:
            If the scheme isn't Basic or the credentials can't be decoded.

    Example:
        >>> parse_basic_auth('Basic YWxpY2U6czNjcjN0')
        DirectiveAuth(key='alice', secret='s3cr3t')
    """
    if header is None:
        return None

    scheme, _, token = header.strip().partition(' ')
    if scheme.lower() != 'basic' or not token.strip():
        raise MalformedAuthorizationError('expected Basic credentials')

    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError) as e:
        raise MalformedAuthorizationError('credentials are not valid base64-encoded UTF-8') from e

    key, sep, secret = decoded.partition(':')
    if not sep:
        raise MalformedAuthorizationError("credentials must have the form 'key:secret'")
    return DirectiveAuth(key=key, secret=secret)


@guarantee_500_response
@handle_data_store_error
def lambda_handler(event: dict, context: Any) -> dict:
    """Handle incoming API Gateway requests to follow directives

    This Lambda handler follows this procedure to redirect clients:
    - Step 1: Extract directive id from request path
    - Step 2: Decode client credentials, if any
    - Step 3: Follow the directive (checks expiry, auth and call quota)
    - Step 4: Redirect client to the destination

    HTTP responses:
        307: Successful redirect
            headers:
                Location: destination URL
        400: Bad client request
            message: missing directive id or malformed Authorization header
        401: Directive requires credentials which are missing or wrong
            headers:
                WWW-Authenticate: Basic challenge
        404: Directive doesn't exist (or expired)
        410: Directive call quota exhausted
        503: Directive backend unavailable
        504: Directive backend timed out
        500: Internal server error

    Args:
        event (dict):
            API Gateway event payload containing the directive_id path parameter.
        context (LambdaContext):
            AWS Lambda runtime context object (not used directly).

    Returns:
        dict:
            API Gateway-compatible response including statusCode, headers, and body.

    Example:
        >>> event = {'pathParameters': {'directive_id': '0d1c4e0e-...'}}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        307
        >>> response['headers']['Location']
        'https://example.com/my-page'
    """
    # 1- Extract directive id from request's path
    directive_id = (event.get('pathParameters') or {}).get('directive_id')
    if not directive_id:
        logger.info('Missing "directive_id" in path. Responding with 400.', extra={'event': MISSING_DIRECTIVE_ID})
        return response_400(message="missing 'directive_id' in path", error_code=MISSING_DIRECTIVE_ID)

    # 2- Decode client credentials
    try:
        credentials = parse_basic_auth(get_header(event, 'Authorization'))
    except MalformedAuthorizationError as e:
        logger.info(
            'Malformed Authorization header. Responding with 400.',
            extra={'directive_id': directive_id, 'event': MALFORMED_AUTHORIZATION, 'reason': str(e)},
        )
        return response_400(message=f'malformed Authorization header: {e}', error_code=MALFORMED_AUTHORIZATION)

    app_config = load_config('redirect')
    store = DirectiveStore(directive_dao(app_config, prefix=app_prefix()))

    # 3- Follow the directive
    try:
        destination = store.redirect(directive_id, credentials)
    except DirectiveNotFoundError:
        logger.info('Directive not found. Responding with 404.', extra={'directive_id': directive_id, 'event': DIRECTIVE_NOT_FOUND})
        return response_404(message=f"directive '{directive_id}' doesn't exist")
    except DirectiveUnauthorizedError:
        logger.info(
            'Missing or wrong credentials for directive. Responding with 401.',
            extra={'directive_id': directive_id, 'event': DIRECTIVE_UNAUTHORIZED, 'credentials_sent': credentials is not None},
        )
        return response_401()
    except DirectiveExhaustedError:
        logger.info('Directive call quota exhausted. Responding with 410.', extra={'directive_id': directive_id, 'event': DIRECTIVE_EXHAUSTED})
        return response_410(message=f"directive '{directive_id}' has no calls left")

    # 4- Redirect client to destination
    logger.info('Redirecting client to destination. Responding with 307.', extra={'directive_id': directive_id, 'event': REDIRECT_SUCCESS})
    return response_307(location=destination)
