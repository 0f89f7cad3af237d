from palladium.models.directive_model import Directive, DirectiveACLs, DirectiveAuth, ExpireAt, ExpireIn


__all__ = [
    'Directive',
    'DirectiveACLs',
    'DirectiveAuth',
    'ExpireAt',
    'ExpireIn',
]
