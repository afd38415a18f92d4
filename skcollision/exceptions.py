"""Exceptions raised by skcollision.

All errors derive from :class:`CollisionError` and additionally from the
builtin exception a caller would naturally expect, so ``except KeyError``
keeps working for lookups and ``except ValueError`` for bad arguments.
"""


class CollisionError(Exception):
    """Base class of skcollision errors."""


class GeometryError(CollisionError, ValueError):
    """A shape or resolution cannot produce a usable distance field."""


class NotFoundError(CollisionError, KeyError):
    """A link, attached body, world object or group name is unknown."""

    def __str__(self):
        # KeyError quotes its argument, keep the plain message instead.
        if len(self.args) == 1:
            return str(self.args[0])
        return super(NotFoundError, self).__str__()


class InvalidRequestError(CollisionError, ValueError):
    """A collision request cannot be served."""
