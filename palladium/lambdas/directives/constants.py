# Event and error codes
INVALID_JSON_BODY = 'INVALID_JSON_BODY'
UNSUPPORTED_MEDIA_TYPE = 'UNSUPPORTED_MEDIA_TYPE'
PAYLOAD_TOO_LARGE = 'PAYLOAD_TOO_LARGE'
INVALID_DIRECTIVE = 'INVALID_DIRECTIVE'
INVALID_PAGE_SIZE = 'INVALID_PAGE_SIZE'
MISSING_DIRECTIVE_ID = 'MISSING_DIRECTIVE_ID'
DIRECTIVE_NOT_FOUND = 'DIRECTIVE_NOT_FOUND'
METHOD_NOT_ALLOWED = 'METHOD_NOT_ALLOWED'

DIRECTIVE_REGISTERED = 'DIRECTIVE_REGISTERED'
DIRECTIVE_READ = 'DIRECTIVE_READ'
DIRECTIVES_LISTED = 'DIRECTIVES_LISTED'
DIRECTIVE_DELETED = 'DIRECTIVE_DELETED'
DIRECTIVES_CLEARED = 'DIRECTIVES_CLEARED'

# Response header carrying the cursor of the next listing page
NEXT_CURSOR_HEADER = 'X-Next-Cursor'

# Registration bodies
JSON_CONTENT_TYPE = 'application/json'
MAX_BODY_BYTES = 4 * 1024
