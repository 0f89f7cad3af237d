from palladium.dao.base.directive_base_dao import DirectiveBaseDAO, IncrementResult


__all__ = [
    'DirectiveBaseDAO',
    'IncrementResult',
]
