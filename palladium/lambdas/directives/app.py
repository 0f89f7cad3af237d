import json
import logging
from typing import Any

from palladium.models import Directive, DirectiveACLs, DirectiveAuth, ExpireAt, ExpireIn
from palladium.directive_store import DirectiveStore
from palladium.dao import directive_dao
from palladium.dao.exceptions import DirectiveNotFoundError
from palladium.exceptions import ValidationError
from palladium.constants import Paging
from palladium.utils import load_config, app_prefix
from palladium.utils.helpers import guarantee_500_response, handle_data_store_error, get_header
from palladium.lambdas.directives.constants import (
    INVALID_JSON_BODY,
    UNSUPPORTED_MEDIA_TYPE,
    PAYLOAD_TOO_LARGE,
    INVALID_DIRECTIVE,
    INVALID_PAGE_SIZE,
    MISSING_DIRECTIVE_ID,
    DIRECTIVE_NOT_FOUND,
    METHOD_NOT_ALLOWED,
    DIRECTIVE_REGISTERED,
    DIRECTIVE_READ,
    DIRECTIVES_LISTED,
    DIRECTIVE_DELETED,
    DIRECTIVES_CLEARED,
    NEXT_CURSOR_HEADER,
    JSON_CONTENT_TYPE,
    MAX_BODY_BYTES,
)


logger = logging.getLogger(__name__)


def response_200(body: Any, headers: dict | None = None) -> dict:
    return {
        'statusCode': 200,
        'headers': {'Content-Type': 'application/json', **(headers or {})},
        'body': json.dumps(body),
    }


def response_201(*, directive_id: str) -> dict:
    return {
        'statusCode': 201,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps({'id': directive_id}),
    }


def response_400(message: str | None = None, error_code: str | None = None) -> dict:
    base = 'Bad Request'
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    return {
        'statusCode': 400,
        'body': json.dumps(body),
    }


def response_404(message: str | None = None) -> dict:
    base = 'Not Found'
    body = {'message': base if not message else f'{base} ({message})', 'errorCode': DIRECTIVE_NOT_FOUND}
    return {
        'statusCode': 404,
        'body': json.dumps(body),
    }


def response_413() -> dict:
    return {
        'statusCode': 413,
        'body': json.dumps({'message': f'Payload Too Large (limit: {MAX_BODY_BYTES} bytes)', 'errorCode': PAYLOAD_TOO_LARGE}),
    }


def response_415(*, content_type: str) -> dict:
    return {
        'statusCode': 415,
        'body': json.dumps({'message': f"Unsupported Media Type ('{content_type}', expected '{JSON_CONTENT_TYPE}')", 'errorCode': UNSUPPORTED_MEDIA_TYPE}),
    }


def response_405(*, method: str, resource: str) -> dict:
    return {
        'statusCode': 405,
        'headers': {'Allow': 'GET, POST, PUT, DELETE'},
        'body': json.dumps({'message': f'Method Not Allowed ({method} {resource})', 'errorCode': METHOD_NOT_ALLOWED}),
    }


def parse_directive(payload: Any, directive_id: str | None = None) -> Directive:
    """Build a Directive out of a decoded JSON request body

    Body shape:
        {
            "destination": "https://example.com",
            "expiry": {"at": "2030-01-01T00:00:00Z"} | {"seconds": 3600},   (optional)
            "max_calls": 10,                                                (optional)
            "auth": {"key": "alice", "secret": "s3cr3t"}                    (optional)
        }

    Raises:
        ValidationError: If the payload isn't an object of that shape.
    """
    if not isinstance(payload, dict):
        raise ValidationError('request body must be a JSON object')

    expiry = payload.get('expiry')
    if expiry is not None:
        if not isinstance(expiry, dict) or len(expiry) != 1 or not ({'at', 'seconds'} & expiry.keys()):
            raise ValidationError("'expiry' must be either {\"at\": <timestamp>} or {\"seconds\": <int>}")
        expiry = ExpireAt(at=expiry['at']) if 'at' in expiry else ExpireIn(seconds=expiry['seconds'])

    auth = payload.get('auth')
    if auth is not None:
        if not isinstance(auth, dict) or 'key' not in auth or 'secret' not in auth:
            raise ValidationError("'auth' must be {\"key\": <str>, \"secret\": <str>}")
        auth = DirectiveAuth(key=auth['key'], secret=auth['secret'])

    return Directive(
        destination=payload.get('destination'),
        acls=DirectiveACLs(expiry=expiry, max_calls=payload.get('max_calls'), auth=auth),
        id=directive_id,
    )


def serialize_directive(directive: Directive) -> dict:
    """JSON-friendly view of a directive. The auth secret never leaves the service."""
    acls = directive.acls
    return {
        'id': directive.id,
        'destination': directive.destination,
        'acls': {
            'expires_at': acls.expires_at.isoformat() if acls.expires_at else None,
            'max_calls': acls.max_calls,
            'curr_calls': acls.curr_calls,
            'auth_required': acls.auth is not None,
        },
    }


def _register(store: DirectiveStore, event: dict, directive_id: str | None) -> dict:
    content_type = (get_header(event, 'Content-Type') or '').split(';')[0].strip().lower()
    if content_type != JSON_CONTENT_TYPE:
        logger.info('Unsupported content type. Responding with 415.', extra={'event': UNSUPPORTED_MEDIA_TYPE, 'content_type': content_type})
        return response_415(content_type=content_type)

    body = event.get('body') or ''
    if len(body.encode('utf-8')) > MAX_BODY_BYTES:
        logger.info('Body too large. Responding with 413.', extra={'event': PAYLOAD_TOO_LARGE, 'size': len(body.encode('utf-8'))})
        return response_413()

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        logger.info('Invalid JSON body. Responding with 400.', extra={'event': INVALID_JSON_BODY, 'reason': e.msg})
        return response_400(message='invalid JSON body', error_code=INVALID_JSON_BODY)

    try:
        directive = parse_directive(payload, directive_id=directive_id)
        directive_id = store.register(directive)
    except ValidationError as e:
        logger.info('Rejected directive. Responding with 400.', extra={'event': INVALID_DIRECTIVE, 'reason': str(e)})
        return response_400(message=str(e), error_code=INVALID_DIRECTIVE)

    logger.info('Registered directive. Responding with 201.', extra={'directive_id': directive_id, 'event': DIRECTIVE_REGISTERED})
    return response_201(directive_id=directive_id)


def _read(store: DirectiveStore, directive_id: str) -> dict:
    try:
        directive = store.read(directive_id)
    except DirectiveNotFoundError:
        logger.info('Directive not found. Responding with 404.', extra={'directive_id': directive_id, 'event': DIRECTIVE_NOT_FOUND})
        return response_404(message=f"directive '{directive_id}' doesn't exist")

    logger.info('Read directive. Responding with 200.', extra={'directive_id': directive_id, 'event': DIRECTIVE_READ})
    return response_200(serialize_directive(directive))


def _list(store: DirectiveStore, event: dict) -> dict:
    query = event.get('queryStringParameters') or {}
    cursor = query.get('cursor') or None
    try:
        page_size = int(query.get('next', Paging.DEFAULT_PAGE_SIZE))
        ids, next_cursor = store.list(page_size=page_size, cursor=cursor)
    except (ValueError, ValidationError) as e:
        logger.info('Invalid page size. Responding with 400.', extra={'event': INVALID_PAGE_SIZE, 'reason': str(e)})
        return response_400(message=f"'next' must be an integer between 1 and {store.max_page_size}", error_code=INVALID_PAGE_SIZE)

    logger.info('Listed directives. Responding with 200.', extra={'count': len(ids), 'cursor': cursor, 'event': DIRECTIVES_LISTED})
    headers = {NEXT_CURSOR_HEADER: next_cursor} if next_cursor is not None else None
    return response_200(ids, headers=headers)


def _delete(store: DirectiveStore, directive_id: str) -> dict:
    store.delete(directive_id)
    logger.info('Deleted directive. Responding with 200.', extra={'directive_id': directive_id, 'event': DIRECTIVE_DELETED})
    return response_200({'id': directive_id})


def _clear(store: DirectiveStore) -> dict:
    store.clear()
    logger.info('Cleared all directives. Responding with 200.', extra={'event': DIRECTIVES_CLEARED})
    return response_200({'message': 'Cleared all directives.'})


@guarantee_500_response
@handle_data_store_error
def lambda_handler(event: dict, context: Any) -> dict:
    """Handle API Gateway requests managing directives

    Routes:
        POST   /directives                  register a directive under a fresh id
        PUT    /directives/{directive_id}   register (or overwrite) a directive under a given id
        GET    /directives/{directive_id}   read a directive
        GET    /directives?next=&cursor=    list directive ids, one page at a time
        DELETE /directives/{directive_id}   delete a directive
        DELETE /directives                  delete every directive

    HTTP responses:
        200: Successful read, list or delete
            list: JSON array of ids, plus an X-Next-Cursor header if more pages may follow
        201: Directive registered
            id: directive id
        400: Bad client request
            message: invalid JSON body, invalid directive or invalid page size
        404: Directive doesn't exist (or expired)
        405: Unsupported method/resource combination
        413: Registration body larger than 4 KiB
        415: Registration body isn't application/json
        503: Directive backend unavailable
        504: Directive backend timed out
        500: Internal server error

    Args:
        event (dict):
            API Gateway event payload in Lambda Proxy format.
        context (LambdaContext):
            AWS Lambda runtime context object (not used directly).

    Returns:
        dict:
            API Gateway-compatible response including statusCode, headers, and body.

    Example:
        >>> event = {'httpMethod': 'POST', 'resource': '/directives', 'body': '{"destination": "https://example.com"}'}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        201
    """
    method = (event.get('httpMethod') or '').upper()
    resource = event.get('resource') or ''
    directive_id = (event.get('pathParameters') or {}).get('directive_id')

    if resource == '/directives/{directive_id}' and not directive_id:
        logger.info('Missing "directive_id" in path. Responding with 400.', extra={'event': MISSING_DIRECTIVE_ID})
        return response_400(message="missing 'directive_id' in path", error_code=MISSING_DIRECTIVE_ID)

    app_config = load_config('directives')
    store = DirectiveStore(directive_dao(app_config, prefix=app_prefix()))

    match (method, resource):
        case ('POST', '/directives'):
            return _register(store, event, None)
        case ('PUT', '/directives/{directive_id}'):
            return _register(store, event, directive_id)
        case ('GET', '/directives/{directive_id}'):
            return _read(store, directive_id)
        case ('GET', '/directives'):
            return _list(store, event)
        case ('DELETE', '/directives/{directive_id}'):
            return _delete(store, directive_id)
        case ('DELETE', '/directives'):
            return _clear(store)

    logger.info('Unsupported route. Responding with 405.', extra={'method': method, 'resource': resource, 'event': METHOD_NOT_ALLOWED})
    return response_405(method=method, resource=resource)
