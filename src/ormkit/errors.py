"""Error hierarchy shared by every ormkit component."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Sequence


class OrmError(RuntimeError):
    """Base class for errors raised by ormkit.

    Every error carries a short machine-readable ``code``. Subclasses set a default, callers
    may override it per instance.
    """

    default_code: ClassVar[str] = "UNKNOWN"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={str(self)!r})"


class DatabaseError(OrmError):
    """Raised when the pool, a connection or a bootstrap step fails."""

    default_code = "DB_ERROR"


class BuilderError(OrmError, ValueError):
    """Raised when a statement builder receives invalid or incomplete input."""

    default_code = "BUILDER_ERROR"


class FlushFailure(OrmError):
    """Raised when the update sink fails during a synchronous flush.

    The entities in ``batch`` are no longer pending and still report themselves dirty.
    """

    default_code = "FLUSH_ERROR"

    def __init__(self, message: str, *, batch: Sequence[object], code: str | None = None) -> None:
        super().__init__(message, code=code)
        self.batch: tuple[object, ...] = tuple(batch)
