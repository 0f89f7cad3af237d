class PalladiumError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:palladium_error'


class DirectiveError(PalladiumError):
    """Base exception for errors caused by a client's use of a directive."""

    error_code = 'directive:directive_error'


class ValidationError(DirectiveError):
    """Raised when a directive or a request parameter has an invalid shape."""

    error_code = 'directive:validation_error'


class InvalidExpiryFormatError(ValidationError):
    """Raised when a directive expiry cannot be parsed."""

    error_code = 'directive:invalid_expiry_format'


class DirectiveUnauthorizedError(DirectiveError):
    """Raised when a directive requires credentials which are missing or wrong."""

    error_code = 'directive:unauthorized'


class DirectiveExhaustedError(DirectiveError):
    """Raised when a directive's call quota is fully consumed."""

    error_code = 'directive:exhausted'


class ConfigurationError(PalladiumError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'
