from collections.abc import Mapping

from acecwt.cbor.constants import ABBREV
from acecwt.errors import ClaimDecodeError, UnknownAbbreviation, InvalidKeyType


def get_abbrev(name: str) -> int:
    """
    :param name: claim or parameter name
    :return: the integer abbreviation of name, or -1 if there is none
    """
    try:
        index = ABBREV.index(name)
    except ValueError:
        return -1

    return index if index > 0 else -1


def abbreviate(claims: dict) -> dict:
    """
    Replace claim names by their integer abbreviation where one exists
    """
    content = {}

    for name, value in claims.items():
        if not isinstance(name, str):
            raise TypeError(f"Claim names must be strings, got {type(name).__name__}")

        abbrev = get_abbrev(name)
        content[abbrev if abbrev > 0 else name] = value

    return content


def unabbreviate(content) -> dict:
    """
    Map a CBOR map of claims back to claim names
    :param content: the decoded CBOR map
    :return: the claims keyed by their unabbreviated names
    """
    if not isinstance(content, Mapping):
        raise ClaimDecodeError("This is not a CWT")

    claims = {}

    for key, value in content.items():
        if isinstance(key, str):
            name = key
        elif isinstance(key, int) and not isinstance(key, bool):
            if not 0 < key < len(ABBREV):
                raise UnknownAbbreviation(key)
            name = ABBREV[key]
        else:
            raise InvalidKeyType(key)

        if name in claims:
            raise ClaimDecodeError(f"Claim '{name}' appears more than once")

        claims[name] = value

    return claims
