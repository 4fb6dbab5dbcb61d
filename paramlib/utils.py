"""
paramlib utilities shared by the descriptor and engine modules.

- Unset: the "argument omitted" sentinel, distinct from None (a dispatch value of
  None already means "long-only", so omission needs its own marker).
- coalesce(): Unset -> default, everything else unchanged.
- rename(): decorator giving generated methods a proper __name__/__qualname__.
- mirror(): read-only property over "_{name}".

    >>> coalesce(Unset, 0)
    0
    >>> coalesce(None, 0) is None
    True
"""
from typing import final


@final
class UnsetType:
    """
    type of the Unset singleton; falsey, reprs as "Unset", usable in isinstance unions.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    # isinstance(x, int | Unset) and friends
    def __or__(self, other, /):
        try:
            return UnsetType | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | UnsetType
        except TypeError:
            return NotImplemented


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Return `default` when `object` is Unset, otherwise `object` itself (None included).
    """
    if object is Unset:
        return default
    return object


def rename(name, /):
    """
    Decorator: set __name__ and __qualname__ of the decorated function to `name`.

    Used for methods built inside the descriptor metaclass, so tracebacks and
    introspection show "__repr__" instead of the enclosing function's locals.
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def decorator(function):
        function.__name__ = function.__qualname__ = name
        return function

    return decorator


def mirror(name, /):
    """
    Read-only property returning self._{name}; assigning through it raises AttributeError.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return getattr(self, "_" + name)

    return property(getter)


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
)
