from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from subtracker.domain import Category

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


INVALID_COST = "invalid_cost"
INVALID_CYCLE = "invalid_cycle"
INVALID_PAGE_SIZE = "invalid_page_size"
INVALID_PAGE_INDEX = "invalid_page_index"
INVALID_DATE = "invalid_date"
INVALID_HORIZON = "invalid_horizon"
INVALID_SERVICE_NAME = "invalid_service_name"
INVALID_RECORD = "invalid_record"
INVALID_CATEGORY_NAME = "invalid_category_name"
DUPLICATE_CATEGORY = "duplicate_category"
SUBSCRIPTION_NOT_FOUND = "subscription_not_found"
CATEGORY_NOT_FOUND = "category_not_found"
INVALID_SORT_KEY = "invalid_sort_key"


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):
    """Result of an operation that may fail: Right(value) or Left(error).

    Errors travel as values so callers can render them inline instead of
    wrapping every call in try/except.
    """

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    @abstractmethod
    def get_error(self) -> E:
        pass

    def is_left(self) -> bool:
        return not self.is_right()


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return self

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return self

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def failure(code: str, message: str, **context: Any) -> Left:
    return Left({"error": code, "message": message, **context})


def collect(results: Iterable[Either]) -> Either:
    """Turn a sequence of results into one result holding a tuple.

    Stops at the first Left.
    """
    values = []
    for r in results:
        if r.is_left():
            return r
        values.append(r.get_or_else(None))
    return Right(tuple(values))


def safe_category(cats: tuple[Category, ...], cat_id: Optional[str]) -> Maybe[Category]:
    if cat_id is None:
        return Nothing()
    for cat in cats:
        if cat.id == cat_id:
            return Some(cat)
    return Nothing()


def pipe(x, *funcs):
    """Pipe a value through a series of functions.

    pipe(x, f, g, h) == h(g(f(x)))
    """
    res = x
    for f in funcs:
        res = f(res)
    return res
