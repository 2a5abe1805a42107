"""Label matchers evaluated against an alert's label set."""

import re
from collections.abc import Iterable, Iterator, Mapping


class InvalidMatcherError(ValueError):
    """Raised when a regex matcher source does not compile."""


class Matcher:
    """A predicate over a single label.

    A label missing from the label set is evaluated as the empty string, so
    ``Matcher.equal("team", "")`` holds for alerts without a ``team`` label.
    """

    __slots__ = ("name", "value", "is_regex", "_regex")

    def __init__(self, name: str, value: str, regex: re.Pattern[str] | None = None):
        self.name = name
        self.value = value
        self.is_regex = regex is not None
        self._regex = regex

    @classmethod
    def equal(cls, name: str, value: str) -> "Matcher":
        return cls(name, value)

    @classmethod
    def regex(cls, name: str, source: str) -> "Matcher":
        try:
            compiled = re.compile(f"(?:{source})")
        except re.error as e:
            raise InvalidMatcherError(f"invalid regex for label {name!r}: {source!r}: {e}") from e
        return cls(name, source, compiled)

    def matches(self, labels: Mapping[str, str]) -> bool:
        value = labels.get(self.name, "")
        if self._regex is not None:
            return self._regex.fullmatch(value) is not None
        return value == self.value

    def __str__(self) -> str:
        op = "=~" if self.is_regex else "="
        return f'{self.name}{op}"{self.value}"'

    def __repr__(self) -> str:
        return f"<Matcher {self}>"


class Matchers:
    """Conjunction of matchers; all must hold (an empty set always holds)."""

    __slots__ = ("_matchers",)

    def __init__(self, matchers: Iterable[Matcher] = ()):
        self._matchers = tuple(matchers)

    def matches(self, labels: Mapping[str, str]) -> bool:
        return all(m.matches(labels) for m in self._matchers)

    def __iter__(self) -> Iterator[Matcher]:
        return iter(self._matchers)

    def __len__(self) -> int:
        return len(self._matchers)

    def __str__(self) -> str:
        return "{" + ",".join(str(m) for m in self._matchers) + "}"

    def __repr__(self) -> str:
        return f"<Matchers {self}>"
