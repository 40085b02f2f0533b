import builtins
import functools
from collections.abc import Mapping, Sequence, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    internal singleton sentinel for "not provided".

    intent
    - lets constructors and factories tell an omitted keyword apart from an
      explicit None, empty string or other falsy value.
    - importable, but meant for the internal API only.

    behavior
    - truthiness: bool(Unset) is False.
    - identity: one instance per process (see __new__).
    - display: repr(Unset) -> "Unset".
    - final: subclassing raises TypeError.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Return `default` when `object` is Unset, otherwise `object` unchanged.

    Falsy values (None, 0, "", ()) are preserved; only the sentinel is
    replaced.

    Examples
    - coalesce("cly", "app") -> "cly"
    - coalesce(Unset, "app") -> "app"
    - coalesce("", "app")    -> ""
    """
    return default if object is Unset else object


def rename(*parameters):
    """
    Set __name__/__qualname__ on a callable, or return a decorator doing so.

    Forms
    - rename(callable, name) -> callable, renamed in place.
    - rename(name)           -> decorator applying the name later.

    Used to keep generated decorators readable in tracebacks and reprs.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def freeze(object, /):
    """
    Return a shallow read-only view of a container.

    - tuple (named or not)  -> returned as-is
    - Sequence (non-string) -> tuple
    - Mapping               -> MappingProxyType (live view, not a copy)
    - Set                   -> frozenset
    - anything else         -> returned as-is
    """
    if isinstance(object, tuple):
        return object
    if isinstance(object, Sequence) and not isinstance(object, (str, bytes, bytearray)):
        return tuple(object)
    if isinstance(object, Mapping):
        return MappingProxyType(object)
    if isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Define a read-only property over the backing attribute "_{name}".

    Containers are exposed through freeze(), so callers can inspect the
    registry or config without being able to mutate it.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return freeze(getattr(self, "_" + name))

    return property(getter)


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "freeze",
    "mirror",
)
