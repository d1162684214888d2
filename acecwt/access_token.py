from abc import ABCMeta, abstractmethod
from collections.abc import Mapping
from datetime import datetime

from acecwt.cose.constants import Key
from acecwt.cose.key import CoseKey
from acecwt.errors import AceException


def _seconds(value):
    # cbor2 decodes tag 1 (epoch-based date/time) to datetime
    if isinstance(value, datetime):
        return value.timestamp()

    return value


def expired(claims: dict, now) -> bool:
    """
    :param claims: the claims of the token
    :param now: the time to check against, in seconds since the epoch
    :return: True if the token carries an exp claim and now is past it
    """
    exp = claims.get('exp')

    return exp is not None and _seconds(now) > _seconds(exp)


def is_valid(claims: dict, now) -> bool:
    """
    Check nbf and exp (if present), does not look at the crypto wrapper
    :return: True if the token is valid at now
    """
    nbf = claims.get('nbf')
    if nbf is not None and _seconds(now) < _seconds(nbf):
        return False

    return not expired(claims, now)


class AccessToken(metaclass=ABCMeta):

    @property
    @abstractmethod
    def claims(self) -> dict:
        pass

    @abstractmethod
    def encode(self) -> dict:
        """
        :return: the token as CBOR map, without crypto wrapper
        """
        pass

    def expired(self, now) -> bool:
        return expired(self.claims, now)

    def is_valid(self, now) -> bool:
        return is_valid(self.claims, now)

    @property
    def issuer(self) -> str:
        return self.claims.get('iss')

    @property
    def subject(self) -> str:
        return self.claims.get('sub')

    @property
    def audience(self) -> str:
        return self.claims.get('aud')

    @property
    def scope(self) -> str:
        return self.claims.get('scope')

    @property
    def expires(self) -> int:
        return self.claims.get('exp')

    @property
    def not_before(self) -> int:
        return self.claims.get('nbf')

    @property
    def issued_at(self) -> int:
        return self.claims.get('iat')

    @property
    def cti(self) -> bytes:
        cti = self.claims.get('cti')

        if cti is None:
            raise AceException("Token has no cti")

        return cti

    @property
    def confirmation_key(self) -> CoseKey:
        """
        :return: the proof-of-possession key bound through the cnf claim, or None
        """
        cnf = self.claims.get('cnf')

        if not isinstance(cnf, Mapping) or Key.COSE_KEY not in cnf:
            return None

        return CoseKey.from_cose(cnf[Key.COSE_KEY])
