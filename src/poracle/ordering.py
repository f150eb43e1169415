from typing import Iterable, Union

HintLike = Union[bytes, bytearray, str, Iterable[int]]

# Rough frequency order for text: lowercase letters and space first, then
# uppercase, digits and punctuation. build_byte_ordering() appends the rest.
TEXT_ORDERING = (
    b" etaoinsrhldcumfpgwybvk.,\n"
    b"ETAOINSRHLDCUMFPGWYBVK"
    b"0123456789"
    b"'\"-:;!?()/_"
    b"xjqzXJQZ"
    b"#$%&*+<=>@[\\]^`{|}~\t\r"
)


def _as_ints(hint: HintLike) -> Iterable[int]:
    if isinstance(hint, str):
        return hint.encode("latin-1")
    return hint


def build_byte_ordering(hint: HintLike = b"") -> bytes:
    """Turn a (possibly partial) hint into a guess order over all 256 bytes.

    Hint values keep their first-seen order, duplicates are dropped, and every
    value not mentioned is appended in ascending order.
    """
    seen = set()
    ordering = bytearray()
    for value in _as_ints(hint):
        if value not in seen:
            seen.add(value)
            ordering.append(value)

    ordering.extend(value for value in range(256) if value not in seen)
    return bytes(ordering)
