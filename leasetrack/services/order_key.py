"""
Fractional order keys for sibling records (e.g. properties within a project).

A key is a base-62 string: an integer part whose first character encodes its
length (``a``..``z`` positive, ``A``..``Z`` negative) followed by a fractional
part that never ends in ``0``. Plain string comparison orders keys, so a new
key can always be generated between two others, or before/after all of them,
without touching any existing row.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

BASE_62_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

# Keys longer than this should be respaced with reindex_order_keys()
MAX_KEY_LENGTH = 40

_ZERO = BASE_62_DIGITS[0]
_SMALLEST_INTEGER = "A" + _ZERO * 26

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Key arithmetic
# ---------------------------------------------------------------------------

def _midpoint(a: str, b: str | None) -> str:
    """Fractional midpoint of ``a`` and ``b`` (``b is None`` = open upper bound)."""
    if b is not None and a >= b:
        raise ValueError(f"{a} >= {b}")
    if a[-1:] == _ZERO or (b and b[-1:] == _ZERO):
        raise ValueError("trailing zero")
    if b:
        n = 0
        while n < len(b) and (a[n] if n < len(a) else _ZERO) == b[n]:
            n += 1
        if n > 0:
            return b[:n] + _midpoint(a[n:], b[n:])
    digit_a = BASE_62_DIGITS.index(a[0]) if a else 0
    digit_b = BASE_62_DIGITS.index(b[0]) if b is not None else len(BASE_62_DIGITS)
    if digit_b - digit_a > 1:
        return BASE_62_DIGITS[(digit_a + digit_b + 1) // 2]
    if b and len(b) > 1:
        return b[:1]
    return BASE_62_DIGITS[digit_a] + _midpoint(a[1:], None)


def _integer_length(head: str) -> int:
    if "a" <= head <= "z":
        return ord(head) - ord("a") + 2
    if "A" <= head <= "Z":
        return ord("Z") - ord(head) + 2
    raise ValueError(f"invalid order key head: {head}")


def _integer_part(key: str) -> str:
    length = _integer_length(key[0])
    if length > len(key):
        raise ValueError(f"invalid order key: {key}")
    return key[:length]


def _validate_key(key: str) -> None:
    if not key or key == _SMALLEST_INTEGER:
        raise ValueError(f"invalid order key: {key!r}")
    integer = _integer_part(key)
    if key[len(integer):][-1:] == _ZERO:
        raise ValueError(f"invalid order key: {key}")


def _increment_integer(x: str) -> str | None:
    head, digits = x[0], list(x[1:])
    carry = True
    i = len(digits) - 1
    while carry and i >= 0:
        d = BASE_62_DIGITS.index(digits[i]) + 1
        if d == len(BASE_62_DIGITS):
            digits[i] = _ZERO
        else:
            digits[i] = BASE_62_DIGITS[d]
            carry = False
        i -= 1
    if not carry:
        return head + "".join(digits)
    if head == "Z":
        return "a" + _ZERO
    if head == "z":
        return None
    new_head = chr(ord(head) + 1)
    if new_head > "a":
        digits.append(_ZERO)
    else:
        digits.pop()
    return new_head + "".join(digits)


def _decrement_integer(x: str) -> str | None:
    head, digits = x[0], list(x[1:])
    borrow = True
    i = len(digits) - 1
    while borrow and i >= 0:
        d = BASE_62_DIGITS.index(digits[i]) - 1
        if d == -1:
            digits[i] = BASE_62_DIGITS[-1]
        else:
            digits[i] = BASE_62_DIGITS[d]
            borrow = False
        i -= 1
    if not borrow:
        return head + "".join(digits)
    if head == "a":
        return "Z" + BASE_62_DIGITS[-1]
    if head == "A":
        return None
    new_head = chr(ord(head) - 1)
    if new_head < "Z":
        digits.append(BASE_62_DIGITS[-1])
    else:
        digits.pop()
    return new_head + "".join(digits)


def key_between(a: str | None, b: str | None) -> str:
    """Return a key strictly between ``a`` and ``b``.

    ``None`` stands for an open end. Raises ``ValueError`` for malformed keys
    or when ``a >= b``.
    """
    if a is not None:
        _validate_key(a)
    if b is not None:
        _validate_key(b)
    if a is not None and b is not None and a >= b:
        raise ValueError(f"{a} >= {b}")

    if a is None:
        if b is None:
            return "a" + _ZERO
        ib = _integer_part(b)
        fb = b[len(ib):]
        if ib == _SMALLEST_INTEGER:
            return ib + _midpoint("", fb)
        if ib < b:
            return ib
        res = _decrement_integer(ib)
        if res is None:
            raise ValueError("cannot decrement any more")
        return res

    if b is None:
        ia = _integer_part(a)
        fa = a[len(ia):]
        i = _increment_integer(ia)
        return ia + _midpoint(fa, None) if i is None else i

    ia = _integer_part(a)
    fa = a[len(ia):]
    ib = _integer_part(b)
    fb = b[len(ib):]
    if ia == ib:
        return ia + _midpoint(fa, fb)
    i = _increment_integer(ia)
    if i is None:
        raise ValueError("cannot increment any more")
    if i < b:
        return i
    return ia + _midpoint(fa, None)


def n_keys_between(a: str | None, b: str | None, n: int) -> list[str]:
    """Return ``n`` ascending keys strictly between ``a`` and ``b``."""
    if n <= 0:
        return []
    if n == 1:
        return [key_between(a, b)]
    if b is None:
        c = key_between(a, b)
        result = [c]
        for _ in range(n - 1):
            c = key_between(c, b)
            result.append(c)
        return result
    if a is None:
        c = key_between(a, b)
        result = [c]
        for _ in range(n - 1):
            c = key_between(a, c)
            result.append(c)
        result.reverse()
        return result
    mid = n // 2
    c = key_between(a, b)
    return [*n_keys_between(a, c, mid), c, *n_keys_between(c, b, n - mid - 1)]


def first_key() -> str:
    """Key for an empty collection."""
    return key_between(None, None)


# ---------------------------------------------------------------------------
# Collection helpers
# ---------------------------------------------------------------------------

def _order_key_of(item: Any) -> str | None:
    if isinstance(item, Mapping):
        return item.get("order_key")
    return getattr(item, "order_key", None)


def _existing_keys(items: Iterable[Any]) -> list[str]:
    return [k for k in (_order_key_of(item) for item in items) if k]


def key_before_all(items: Iterable[Any]) -> str:
    """Key that sorts before every existing ``order_key`` in *items*.

    Items without a key are ignored. Used for newest-first placement.
    """
    keys = _existing_keys(items)
    if not keys:
        return first_key()
    return key_between(None, min(keys))


def key_after_all(items: Iterable[Any]) -> str:
    """Key that sorts after every existing ``order_key`` in *items*."""
    keys = _existing_keys(items)
    if not keys:
        return first_key()
    return key_between(max(keys), None)


def sort_by_order_key(items: Iterable[T]) -> list[T]:
    """Stable lexicographic sort by ``order_key``; the input is not mutated."""
    return sorted(items, key=lambda item: _order_key_of(item) or "")


def needs_reindexing(items: Iterable[Any]) -> bool:
    return any(len(k) > MAX_KEY_LENGTH for k in _existing_keys(items))


def reindex_order_keys(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return copies of *items* (in their current order) with evenly spaced fresh keys."""
    if not items:
        return []
    keys = n_keys_between(None, None, len(items))
    return [{**item, "order_key": key} for item, key in zip(items, keys)]
