# Event and error codes
MISSING_DIRECTIVE_ID = 'MISSING_DIRECTIVE_ID'
MALFORMED_AUTHORIZATION = 'MALFORMED_AUTHORIZATION'
DIRECTIVE_NOT_FOUND = 'DIRECTIVE_NOT_FOUND'
DIRECTIVE_UNAUTHORIZED = 'DIRECTIVE_UNAUTHORIZED'
DIRECTIVE_EXHAUSTED = 'DIRECTIVE_EXHAUSTED'
REDIRECT_SUCCESS = 'REDIRECT_SUCCESS'

WWW_AUTHENTICATE = 'Basic realm="palladium", charset="UTF-8"'
