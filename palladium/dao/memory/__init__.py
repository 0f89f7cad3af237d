from palladium.dao.memory.directive_memory_dao import DirectiveMemoryDAO


__all__ = ['DirectiveMemoryDAO']
