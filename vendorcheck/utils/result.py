"""
Explicit success/failure values for datastore reads.

Read adapters return Ok(value) or Err(DataError); callers decide whether a
failure falls back to a neutral default (unwrap_or) or propagates (unwrap).
"""
from __future__ import annotations
import functools
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

from sqlalchemy.exc import SQLAlchemyError

T = TypeVar("T")
U = TypeVar("U")


class DataError(Exception):
    """A datastore read failed."""


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        return Ok(fn(self.value))

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: DataError

    @property
    def is_ok(self) -> bool:
        return False

    def map(self, fn: Callable[[Any], Any]) -> "Err":
        return self

    def unwrap(self):
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default


Result = Union[Ok[T], Err]


def captures_data_errors(fn: Callable[..., T]) -> Callable[..., Result]:
    """Run a read and wrap its outcome; SQLAlchemy failures become Err."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return Ok(fn(*args, **kwargs))
        except SQLAlchemyError as e:
            err = DataError(f"{fn.__name__} failed: {e}")
            err.__cause__ = e
            return Err(err)

    return wrapper
