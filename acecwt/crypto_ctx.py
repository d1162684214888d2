"""
Signing, MAC-ing and encryption contexts for CWTs.

Instead of instantiating the context classes, use the factory functions,
which say what parameters each COSE message type expects. Every context
class only carries the fields meaningful for its message type.
"""
from collections import namedtuple

from ecdsa import SigningKey, VerifyingKey

from acecwt.cose.constants import Tag, Algorithm
from acecwt.cose.key import CoseKey
from acecwt.errors import MissingKeyMaterial, InvalidKeyMaterial


Signer = namedtuple('Signer', 'key alg kid', defaults=(None, None))

Recipient = namedtuple('Recipient', 'key alg kid', defaults=(Algorithm.DIRECT, None))


class CwtCryptoCtx:
    """
    Base of the six context types, tag is the COSE message tag the context
    creates or validates
    """
    __slots__ = ()

    tag = None

    def __eq__(self, other):
        return type(self) is type(other) and tuple.__eq__(self, other)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((type(self), tuple(self)))


class SignCtx(CwtCryptoCtx, namedtuple('SignCtx', 'signers public_key kid alg')):
    __slots__ = ()
    tag = Tag.COSE_SIGN


class Sign1Ctx(CwtCryptoCtx, namedtuple('Sign1Ctx', 'private_key public_key alg')):
    __slots__ = ()
    tag = Tag.COSE_SIGN1


class MacCtx(CwtCryptoCtx, namedtuple('MacCtx', 'recipients alg')):
    __slots__ = ()
    tag = Tag.COSE_MAC


class Mac0Ctx(CwtCryptoCtx, namedtuple('Mac0Ctx', 'key alg')):
    __slots__ = ()
    tag = Tag.COSE_MAC0


class EncryptCtx(CwtCryptoCtx, namedtuple('EncryptCtx', 'recipients alg')):
    __slots__ = ()
    tag = Tag.COSE_ENCRYPT


class Encrypt0Ctx(CwtCryptoCtx, namedtuple('Encrypt0Ctx', 'key alg')):
    __slots__ = ()
    tag = Tag.COSE_ENCRYPT0


def _require_alg(alg):
    if alg is None:
        raise MissingKeyMaterial("An algorithm is required")
    if isinstance(alg, bool) or not isinstance(alg, (int, str)):
        raise InvalidKeyMaterial(f"Algorithm must be an int or a text string, got {type(alg).__name__}")


def _unwrap(key, kid=None):
    """
    :return: (raw key, key id), taking the key id from a CoseKey unless one is given
    """
    if isinstance(key, CoseKey):
        return key.key, kid if kid is not None else key.key_id

    return key, kid


def _private_key(key):
    if key is None:
        raise MissingKeyMaterial("A private key is required")
    if isinstance(key, VerifyingKey):
        raise InvalidKeyMaterial("A public key cannot create signatures")

    return key


def _public_key(key):
    if key is None:
        raise MissingKeyMaterial("A public key is required")
    if isinstance(key, SigningKey):
        raise InvalidKeyMaterial("Verification contexts must not hold a private key")

    return key


def _symmetric_key(key):
    if key is None:
        raise MissingKeyMaterial("A symmetric key is required")
    if not isinstance(key, bytes):
        raise InvalidKeyMaterial(f"Symmetric keys must be bytes, got {type(key).__name__}")
    if len(key) == 0:
        raise MissingKeyMaterial("A symmetric key is required")

    return key


def _recipients(recipients) -> tuple:
    if not recipients:
        raise MissingKeyMaterial("At least one recipient is required")

    checked = []
    for r in recipients:
        key, kid = _unwrap(r.key, r.kid)
        _require_alg(r.alg)
        checked.append(Recipient(_symmetric_key(key), r.alg, kid))

    return tuple(checked)


def sign_create(signers, alg) -> SignCtx:
    """
    Create a context for making Sign COSE messages
    :param signers: Signer tuples, a signer without alg uses alg
    :param alg: the signature algorithm (from Algorithm.*)
    """
    _require_alg(alg)

    if not signers:
        raise MissingKeyMaterial("At least one signer is required")

    checked = []
    for s in signers:
        key, kid = _unwrap(s.key, s.kid)
        if s.alg is not None:
            _require_alg(s.alg)
        checked.append(Signer(_private_key(key), alg if s.alg is None else s.alg, kid))

    return SignCtx(signers=tuple(checked), public_key=None, kid=None, alg=alg)


def sign_verify(public_key, alg, kid: bytes = None) -> SignCtx:
    """
    Create a context for verifying Sign COSE messages
    :param public_key: VerifyingKey or CoseKey, the key id of a CoseKey is used unless kid is given
    :param kid: only signatures carrying this key id are considered
    """
    _require_alg(alg)
    key, kid = _unwrap(public_key, kid)

    return SignCtx(signers=(), public_key=_public_key(key), kid=kid, alg=alg)


def sign1_create(private_key, alg) -> Sign1Ctx:
    _require_alg(alg)
    key, _ = _unwrap(private_key)

    return Sign1Ctx(private_key=_private_key(key), public_key=None, alg=alg)


def sign1_verify(public_key, alg) -> Sign1Ctx:
    _require_alg(alg)
    key, _ = _unwrap(public_key)

    return Sign1Ctx(private_key=None, public_key=_public_key(key), alg=alg)


def mac(recipients, alg) -> MacCtx:
    """
    Create a context for making or verifying MAC COSE messages
    :param recipients: Recipient tuples
    :param alg: the MAC algorithm
    """
    _require_alg(alg)

    return MacCtx(recipients=_recipients(recipients), alg=alg)


def mac0(key: bytes, alg) -> Mac0Ctx:
    _require_alg(alg)
    key, _ = _unwrap(key)

    return Mac0Ctx(key=_symmetric_key(key), alg=alg)


def encrypt(recipients, alg) -> EncryptCtx:
    """
    Create a context for making or decrypting Encrypt COSE messages
    :param recipients: Recipient tuples
    :param alg: the content encryption algorithm
    """
    _require_alg(alg)

    return EncryptCtx(recipients=_recipients(recipients), alg=alg)


def encrypt0(key: bytes, alg) -> Encrypt0Ctx:
    _require_alg(alg)
    key, _ = _unwrap(key)

    return Encrypt0Ctx(key=_symmetric_key(key), alg=alg)
