"""
Domain name encoding - lossless packing of names into fixed-width keys.

Names use a 36-symbol alphabet (a-z, 0-9) mapped to codes 1..36, one byte
per character. Seven characters are packed into each 64-bit word:

    characters  0..6   -> word3
    characters  7..13  -> word2
    characters 14..20  -> word1

Within a word, character i sits at bit offset 8 * (i % 7). The length is
stored alongside the three words, so the key is (word1, word2, word3, length).
Code 0 never appears inside a name, which keeps the packing injective.
"""

import string
from dataclasses import dataclass

from .exceptions import InvalidName

MAX_NAME_LENGTH = 21
CHARS_PER_WORD = 7
BITS_PER_CHAR = 8

ALPHABET = string.ascii_lowercase + string.digits
_CHAR_TO_CODE = {char: index + 1 for index, char in enumerate(ALPHABET)}
_CODE_TO_CHAR = {code: char for char, code in _CHAR_TO_CODE.items()}

_WORD_MASK = (1 << 64) - 1


@dataclass(frozen=True, order=True)
class DomainKey:
    """Fixed-width storage key for a domain name."""

    word1: int
    word2: int
    word3: int
    length: int

    def to_bytes(self) -> bytes:
        """Serialize to 32 bytes (four big-endian u64 words)."""
        return b"".join(
            word.to_bytes(8, "big") for word in (self.word1, self.word2, self.word3, self.length)
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> "DomainKey":
        if len(raw) != 32:
            raise InvalidName(f"Domain key must be 32 bytes, got {len(raw)}")
        words = [int.from_bytes(raw[i : i + 8], "big") for i in range(0, 32, 8)]
        return cls(*words)


def validate_name(name: str) -> str:
    """
    Check a name against the external name format.

    Invalid input is rejected, never corrected: "Alice" fails rather
    than being lowercased.

    Raises:
        InvalidName: If the name is empty, too long, or has a bad character
    """
    if not isinstance(name, str) or not name:
        raise InvalidName("Domain name must have at least 1 character")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidName(f"Domain name must be at most {MAX_NAME_LENGTH} characters")
    for char in name:
        if char not in _CHAR_TO_CODE:
            raise InvalidName(f"Invalid character {char!r} in domain name")
    return name


def encode(name: str) -> DomainKey:
    """Pack a valid name into its DomainKey."""
    validate_name(name)

    words = [0, 0, 0]  # word3, word2, word1
    for index, char in enumerate(name):
        shift = (index % CHARS_PER_WORD) * BITS_PER_CHAR
        words[index // CHARS_PER_WORD] |= _CHAR_TO_CODE[char] << shift

    word3, word2, word1 = words
    return DomainKey(word1=word1, word2=word2, word3=word3, length=len(name))


def decode(key: DomainKey) -> str:
    """
    Unpack a DomainKey back into its name.

    Raises:
        InvalidName: If the key holds an unknown code, non-zero padding,
            or an out-of-range length
    """
    if not 1 <= key.length <= MAX_NAME_LENGTH:
        raise InvalidName(f"Encoded length {key.length} out of range")

    words = (key.word3, key.word2, key.word1)
    if any(word < 0 or word > _WORD_MASK for word in words):
        raise InvalidName("Encoded word out of range")

    chars = []
    for index in range(key.length):
        shift = (index % CHARS_PER_WORD) * BITS_PER_CHAR
        code = (words[index // CHARS_PER_WORD] >> shift) & 0xFF
        char = _CODE_TO_CHAR.get(code)
        if char is None:
            raise InvalidName(f"Invalid character code {code} at position {index}")
        chars.append(char)

    # Bits past the last character must be zero or two keys could decode alike
    if encode("".join(chars)) != key:
        raise InvalidName("Encoded key has non-zero padding")

    return "".join(chars)
