from palladium.dao.base import DirectiveBaseDAO, IncrementResult
from palladium.dao.factory import directive_dao


__all__ = [
    'DirectiveBaseDAO',
    'IncrementResult',
    'directive_dao',
]
