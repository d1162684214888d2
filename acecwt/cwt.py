import logging

from cbor2 import dumps, CBOREncodeError

from acecwt.access_token import AccessToken
from acecwt.cbor import abbreviate, unabbreviate
from acecwt.cose import cose
from acecwt.cose.backend import default_backend
from acecwt.cose.constants import Header, Tag, Algorithm, AEAD_ALGORITHMS, MAC_KEY_LENGTHS, Key as Cose
from acecwt.cose.cose import (CoseException, UnsupportedAlgorithm, MalformedMessage, CoseRecipient,
                              Sign1Message, SignMessage, Mac0Message, MacMessage, Encrypt0Message, EncryptMessage)
from acecwt.cose.key import CoseKey
from acecwt.crypto_ctx import CwtCryptoCtx, SignCtx, Sign1Ctx, MacCtx, Mac0Ctx, EncryptCtx, Encrypt0Ctx
from acecwt.errors import (ClaimDecodeError, EncodeError, CryptoFailure, UnknownEnvelope, NoValidSignature,
                           SignatureInvalid, NoValidKey, ValidationFailed)

logger = logging.getLogger(__name__)


class CWT(AccessToken):

    def __init__(self, claims: dict):
        self._claims = dict(claims)

    @property
    def claims(self) -> dict:
        """
        :return: a copy of the claims in this CWT
        """
        return dict(self._claims)

    def get_claim(self, name: str):
        """
        :return: the value of the claim, or None if this CWT does not carry it
        """
        return self._claims.get(name)

    def claim_keys(self) -> frozenset:
        return frozenset(self._claims)

    def bind_key(self, key: CoseKey) -> 'CWT':
        """
        :return: a copy of this CWT with key bound as proof-of-possession key in the cnf claim
        """
        claims = self.claims
        claims['cnf'] = {Cose.COSE_KEY: key.encode()}

        return CWT(claims)

    def encode(self) -> dict:
        return abbreviate(self._claims)

    def serialize(self, ctx, backend=None) -> bytes:
        """
        Wrap this CWT in the COSE message ctx describes
        :param ctx: a context from acecwt.crypto_ctx
        :param backend: CryptoBackend, defaults to default_backend()
        :return: the tagged COSE message
        """
        backend = backend or default_backend()

        try:
            payload = dumps(self.encode(), canonical=True)
        except (CBOREncodeError, TypeError, ValueError) as err:
            raise EncodeError(f"Claims cannot be encoded as CBOR: {err}") from err

        try:
            msg = _wrap(payload, ctx, backend)
        except CoseException as err:
            raise CryptoFailure(str(err)) from err

        return msg.serialize()

    @classmethod
    def process_cose(cls, encoded: bytes, ctx, backend=None) -> 'CWT':
        """
        Parse and validate the COSE wrapper of a CWT
        :param encoded: the raw bytes of the COSE message containing the CWT
        :param ctx: the context holding the keys to validate with
        :return: the CWT, only once the COSE message validated
        """
        backend = backend or default_backend()

        try:
            msg = cose.decode(encoded)
        except MalformedMessage as err:
            logger.debug("Rejecting COSE message: %s", err)
            raise UnknownEnvelope() from err

        logger.debug("Processing %s with %s", type(msg).__name__, type(ctx).__name__)

        payload = _unwrappers[msg.cbor_tag](msg, ctx, backend)

        try:
            content = cose.decode_cbor(payload)
        except MalformedMessage as err:
            raise ClaimDecodeError("Payload is not a CBOR map") from err

        return cls(unabbreviate(content))

    def __eq__(self, other):
        if not isinstance(other, CWT):
            return NotImplemented

        return self._claims == other._claims

    def __str__(self):
        return str(self._claims)


def encode(claims: dict, ctx, backend=None) -> bytes:
    return CWT(claims).serialize(ctx, backend)


def decode(encoded: bytes, ctx, backend=None) -> dict:
    return CWT.process_cose(encoded, ctx, backend).claims


def _wrap(payload: bytes, ctx, backend):
    if not isinstance(ctx, CwtCryptoCtx):
        raise EncodeError("Unknown COSE wrapper type")

    protected = {Header.ALG: ctx.alg}

    if isinstance(ctx, Encrypt0Ctx):
        msg = Encrypt0Message(protected=protected, plaintext=payload)
        msg.encrypt(ctx.key, backend)

    elif isinstance(ctx, EncryptCtx):
        if ctx.alg not in AEAD_ALGORITHMS:
            raise UnsupportedAlgorithm(ctx.alg)

        (key_length, _, _) = AEAD_ALGORITHMS[ctx.alg]
        cek = _content_key(ctx.recipients, key_length, backend)

        msg = EncryptMessage(protected=protected, plaintext=payload)
        msg.recipients = [CoseRecipient.create(r.key, r.alg, r.kid, cek, backend) for r in ctx.recipients]
        msg.encrypt(cek, backend)

    elif isinstance(ctx, Sign1Ctx):
        if ctx.private_key is None:
            raise EncodeError("Context holds no private key, it can only verify")

        msg = Sign1Message(protected=protected, payload=payload)
        msg.sign(ctx.private_key, backend)

    elif isinstance(ctx, SignCtx):
        if not ctx.signers:
            raise EncodeError("Context holds no signers, it can only verify")

        msg = SignMessage(protected=protected, payload=payload)
        for s in ctx.signers:
            msg.add_signature(s.key, s.alg, s.kid, backend)

    elif isinstance(ctx, MacCtx):
        if ctx.alg not in MAC_KEY_LENGTHS:
            raise UnsupportedAlgorithm(ctx.alg)

        cek = _content_key(ctx.recipients, MAC_KEY_LENGTHS[ctx.alg], backend)

        msg = MacMessage(protected=protected, payload=payload)
        msg.recipients = [CoseRecipient.create(r.key, r.alg, r.kid, cek, backend) for r in ctx.recipients]
        msg.create(cek, backend)

    elif isinstance(ctx, Mac0Ctx):
        msg = Mac0Message(protected=protected, payload=payload)
        msg.create(ctx.key, backend)

    else:
        raise EncodeError("Unknown COSE wrapper type")

    return msg


def _content_key(recipients, length: int, backend) -> bytes:
    """
    Pick the key protecting the content: the shared key of direct
    recipients, or a fresh key that is wrapped for every recipient
    """
    direct = {r.key for r in recipients if r.alg == Algorithm.DIRECT}

    if not direct:
        return backend.random_bytes(length)

    if len(direct) > 1 or any(r.alg != Algorithm.DIRECT for r in recipients):
        raise CoseException("Direct recipients must all share one key and cannot be mixed with key wrap")

    return direct.pop()


def _matches(expected, actual) -> bool:
    # 1 == True in Python, header values must match in type too
    return type(expected) is type(actual) and expected == actual


def _attempt(operation, *args):
    try:
        return operation(*args)
    except CoseException as err:
        logger.debug("Candidate failed: %s", err)
        return None


def _unwrap_sign(msg: SignMessage, ctx, backend) -> bytes:
    if isinstance(ctx, SignCtx) and ctx.public_key is not None:
        for index, signature in enumerate(msg.signatures):
            if ctx.kid is not None and not _matches(ctx.kid, signature.kid):
                logger.debug("Skipping signature %d, key id does not match", index)
                continue

            if not _matches(ctx.alg, signature.alg):
                logger.debug("Skipping signature %d, algorithm does not match", index)
                continue

            if _attempt(msg.verify_signature, signature, ctx.public_key, backend):
                return msg.payload

    raise NoValidSignature()


def _unwrap_sign1(msg: Sign1Message, ctx, backend) -> bytes:
    if isinstance(ctx, Sign1Ctx) and ctx.public_key is not None and _matches(ctx.alg, msg.alg):
        if _attempt(msg.verify, ctx.public_key, backend):
            return msg.payload

    raise SignatureInvalid()


def _recipient_pairs(msg, ctx):
    """
    Yield (context recipient, message recipient) pairs that agree on key id
    and algorithm, in context declaration order then wire order
    """
    for me in ctx.recipients:
        for index, r in enumerate(msg.recipients):
            if me.kid is not None and not _matches(me.kid, r.kid):
                continue

            if not _matches(me.alg, r.alg):
                logger.debug("Skipping recipient %d, algorithm does not match", index)
                continue

            yield me, r


def _unwrap_mac(msg: MacMessage, ctx, backend) -> bytes:
    if isinstance(ctx, MacCtx) and _matches(ctx.alg, msg.alg):
        for me, r in _recipient_pairs(msg, ctx):
            cek = _attempt(r.content_key, me.key, backend)

            if cek is not None and _attempt(msg.verify, cek, backend):
                return msg.payload

    raise NoValidKey("No valid MAC found")


def _unwrap_encrypt(msg: EncryptMessage, ctx, backend) -> bytes:
    if isinstance(ctx, EncryptCtx) and _matches(ctx.alg, msg.alg):
        for me, r in _recipient_pairs(msg, ctx):
            cek = _attempt(r.content_key, me.key, backend)

            if cek is not None:
                plaintext = _attempt(msg.decrypt, cek, backend)

                if plaintext is not None:
                    return plaintext

    raise NoValidKey("No valid key for ciphertext found")


def _unwrap_mac0(msg: Mac0Message, ctx, backend) -> bytes:
    if isinstance(ctx, Mac0Ctx) and _matches(ctx.alg, msg.alg):
        if _attempt(msg.verify, ctx.key, backend):
            return msg.payload

    raise ValidationFailed()


def _unwrap_encrypt0(msg: Encrypt0Message, ctx, backend) -> bytes:
    if isinstance(ctx, Encrypt0Ctx) and _matches(ctx.alg, msg.alg):
        plaintext = _attempt(msg.decrypt, ctx.key, backend)

        if plaintext is not None:
            return plaintext

    raise ValidationFailed()


_unwrappers = {
    Tag.COSE_SIGN: _unwrap_sign,
    Tag.COSE_SIGN1: _unwrap_sign1,
    Tag.COSE_MAC: _unwrap_mac,
    Tag.COSE_MAC0: _unwrap_mac0,
    Tag.COSE_ENCRYPT: _unwrap_encrypt,
    Tag.COSE_ENCRYPT0: _unwrap_encrypt0,
}
