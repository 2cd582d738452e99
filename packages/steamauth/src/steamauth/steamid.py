"""
# 64-bit Account Identifier Codec

Parses and validates the structured 64-bit account identifier (SteamID64).

## Bit Layout (most significant first):
```
| universe: 8 | account type: 4 | instance: 20 | account id: 32 |
```

## Design Decisions:
- The decimal string the identifier was parsed from is kept verbatim and is
  what `str()` returns. It is never re-encoded from the fields.
- Parsing only fails on empty or non-numeric input. Any 64-bit number parses,
  even when its fields are nonsense; use `is_valid()` to check them.

## Example:
```python
steam_id = parse("76561197960287930")
steam_id.is_valid_individual()  # True
str(steam_id)                   # "76561197960287930"
```
"""

from dataclasses import dataclass, field
from enum import IntEnum

from .errors import EmptyInputError, NotANumberError

ACCOUNT_ID_MASK = 0xFFFFFFFF
ACCOUNT_INSTANCE_MASK = 0x000FFFFF
ACCOUNT_TYPE_MASK = 0xF
UNIVERSE_MASK = 0xFF

_UINT64_MAX = (1 << 64) - 1


class Universe(IntEnum):
    INVALID = 0
    PUBLIC = 1
    BETA = 2
    INTERNAL = 3
    DEV = 4


class AccountType(IntEnum):
    INVALID = 0
    INDIVIDUAL = 1
    MULTISEAT = 2
    GAME_SERVER = 3
    ANON_GAME_SERVER = 4
    PENDING = 5
    CONTENT_SERVER = 6
    CLAN = 7
    CHAT = 8
    P2P_SUPER_SEEDER = 9
    ANON_USER = 10


class Instance(IntEnum):
    ALL = 0
    DESKTOP = 1
    CONSOLE = 2
    WEB = 3


@dataclass(frozen=True)
class SteamID:
    """
    Immutable, parsed account identifier.

    ## Attributes:
    - `universe` (int): 8-bit universe, see `Universe`
    - `account_type` (int): 4-bit account type, see `AccountType`
    - `instance` (int): 20-bit instance, see `Instance` for the known values
    - `account_id` (int): 32-bit unsigned account number
    - `original` (str): The exact decimal string this was parsed from

    Fields are kept as plain ints because out-of-range values must still be
    representable; the enums are only used for comparisons.
    """

    universe: int
    account_type: int
    instance: int
    account_id: int
    original: str = field(compare=False)

    def __str__(self) -> str:
        return self.original

    @property
    def as_int(self) -> int:
        """Recompose the 64-bit value from the fields."""
        return (
            (self.universe & UNIVERSE_MASK) << 56
            | (self.account_type & ACCOUNT_TYPE_MASK) << 52
            | (self.instance & ACCOUNT_INSTANCE_MASK) << 32
            | (self.account_id & ACCOUNT_ID_MASK)
        )

    def is_valid(self) -> bool:
        """
        Structural validity check.

        ## Rules:
        - Account type must be a known, non-invalid type (1..10)
        - Universe must be a known, non-invalid universe (1..4)
        - Individual: nonzero account id and instance at most `Web`
        - Clan: nonzero account id and instance `All`
        - Game server: nonzero account id
        """
        if not AccountType.INDIVIDUAL <= self.account_type <= AccountType.ANON_USER:
            return False
        if not Universe.PUBLIC <= self.universe <= Universe.DEV:
            return False
        if self.account_type == AccountType.INDIVIDUAL and (
            self.account_id == 0 or self.instance > Instance.WEB
        ):
            return False
        if self.account_type == AccountType.CLAN and (
            self.account_id == 0 or self.instance != Instance.ALL
        ):
            return False
        if self.account_type == AccountType.GAME_SERVER and self.account_id == 0:
            return False
        return True

    def is_valid_individual(self) -> bool:
        """
        Stricter check gating Guard-code submission: only a public, desktop
        instance of an individual account with a nonzero account id passes.
        """
        return (
            self.universe == Universe.PUBLIC
            and self.account_type == AccountType.INDIVIDUAL
            and self.instance == Instance.DESKTOP
            and self.account_id != 0
        )


def parse(value: str) -> SteamID:
    """
    Parse a 64-bit unsigned decimal string into a `SteamID`.

    ## Raises:
    - `EmptyInputError`: If `value` is empty
    - `NotANumberError`: If `value` is not a decimal number in the unsigned
      64-bit range
    """
    if value == "":
        raise EmptyInputError("can't parse empty string as SteamID64")

    if not value.isascii() or not value.isdigit():
        raise NotANumberError(f"can't parse {value!r} as SteamID64", value=value)

    number = int(value)
    if number > _UINT64_MAX:
        raise NotANumberError(f"{value!r} overflows 64 bits", value=value)

    return SteamID(
        universe=(number >> 56) & UNIVERSE_MASK,
        account_type=(number >> 52) & ACCOUNT_TYPE_MASK,
        instance=(number >> 32) & ACCOUNT_INSTANCE_MASK,
        account_id=number & ACCOUNT_ID_MASK,
        original=value,
    )
