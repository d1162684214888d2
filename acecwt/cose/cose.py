from abc import ABCMeta, abstractmethod
from collections.abc import Mapping
from io import BytesIO

from cbor2 import dumps, CBORTag, CBORDecoder, CBORDecodeError

from acecwt.cose.constants import Header, Tag, Algorithm, AEAD_ALGORITHMS, KEY_WRAP_ALGORITHMS


class CoseException(Exception):
    pass


class UnsupportedAlgorithm(CoseException):
    def __init__(self, alg):
        super().__init__(f"Unsupported algorithm: {alg}")
        self.alg = alg


class DecryptionFailed(CoseException):
    pass


class MalformedMessage(CoseException):
    pass


def sign_structure(context: str,
                   body_protected: bytes,
                   payload: bytes,
                   external_aad: bytes,
                   sign_protected: bytes = None):

    if sign_protected is not None:
        return [context, body_protected, sign_protected, external_aad, payload]

    return [context, body_protected, external_aad, payload]


def decode_cbor(encoded: bytes):
    """
    Decode exactly one CBOR data item
    :raises MalformedMessage: if encoded is not valid CBOR or has bytes left after the item
    """
    if not isinstance(encoded, bytes):
        raise MalformedMessage("Expected CBOR encoded bytes")

    fp = BytesIO(encoded)

    try:
        decoded = CBORDecoder(fp).decode()
    except (CBORDecodeError, ValueError, TypeError, EOFError, OverflowError, RecursionError) as err:
        raise MalformedMessage(f"Invalid CBOR: {err}") from err

    if fp.tell() != len(encoded):
        raise MalformedMessage("Trailing bytes after CBOR data item")

    return decoded


def _is_array(value) -> bool:
    # Items inside tags may decode to tuples
    return isinstance(value, (list, tuple))


def _check_array(value, length: int, name: str) -> list:
    if not _is_array(value) or len(value) != length:
        raise MalformedMessage(f"{name} must be an array of {length} elements")

    return list(value)


def _check_bytes(value, name: str) -> bytes:
    if not isinstance(value, bytes):
        raise MalformedMessage(f"{name} must be a byte string")

    return value


class CoseStructure:
    """
    Header handling shared by COSE messages, signatures and recipients
    """

    def __init__(self, protected: dict = None, unprotected: dict = None):
        self.protected = {} if protected is None else dict(protected)
        self.unprotected = {} if unprotected is None else dict(unprotected)

        # Protected headers received on the wire are kept as they were
        # signed, re-encoding could change the bytes
        self._encoded_protected = None

    @property
    def encoded_protected(self) -> bytes:
        if self._encoded_protected is not None:
            return self._encoded_protected

        return dumps(self.protected) if self.protected else b''

    def find_attribute(self, label):
        if label in self.protected:
            return self.protected[label]

        return self.unprotected.get(label)

    @property
    def alg(self):
        return self.find_attribute(Header.ALG)

    @property
    def kid(self):
        return self.find_attribute(Header.KID)

    def _load_headers(self, protected, unprotected):
        _check_bytes(protected, "Protected header")

        decoded = decode_cbor(protected) if protected else {}
        if not isinstance(decoded, Mapping):
            raise MalformedMessage("Protected header must be a map")

        if not isinstance(unprotected, Mapping):
            raise MalformedMessage("Unprotected header must be a map")

        self.protected = dict(decoded)
        self.unprotected = dict(unprotected)
        self._encoded_protected = protected


class CoseSignature(CoseStructure):

    def __init__(self, protected: dict = None, unprotected: dict = None, signature: bytes = b''):
        super().__init__(protected, unprotected)
        self.signature = signature

    @property
    def content(self):
        return [self.encoded_protected, self.unprotected, self.signature]

    @classmethod
    def from_cbor(cls, value):
        (protected, unprotected, signature) = _check_array(value, 3, "COSE_Signature")

        decoded = CoseSignature(signature=_check_bytes(signature, "Signature"))
        decoded._load_headers(protected, unprotected)

        return decoded


class CoseRecipient(CoseStructure):

    def __init__(self, protected: dict = None, unprotected: dict = None, ciphertext: bytes = b''):
        super().__init__(protected, unprotected)
        self.ciphertext = ciphertext

    @property
    def content(self):
        return [self.encoded_protected, self.unprotected, self.ciphertext]

    @classmethod
    def create(cls, key: bytes, alg: int, kid: bytes, cek: bytes, backend) -> 'CoseRecipient':
        """
        Build the recipient entry that conveys cek to the holder of key
        :param key: the recipient's shared key
        :param alg: DIRECT or one of the AES key wrap algorithms
        :param kid: the recipient's key id, or None
        :param cek: the content encryption (or MAC) key
        """
        unprotected = {Header.ALG: alg}
        if kid is not None:
            unprotected[Header.KID] = kid

        if alg == Algorithm.DIRECT:
            if key != cek:
                raise CoseException("Direct recipient key differs from the content key")
            ciphertext = b''
        elif alg in KEY_WRAP_ALGORITHMS:
            ciphertext = backend.wrap_key(key, alg, cek)
        else:
            raise UnsupportedAlgorithm(alg)

        return CoseRecipient(unprotected=unprotected, ciphertext=ciphertext)

    def content_key(self, key: bytes, backend) -> bytes:
        """
        Recover the content key of the message from this entry using key
        """
        alg = self.alg

        if alg == Algorithm.DIRECT:
            return key

        if alg in KEY_WRAP_ALGORITHMS:
            return backend.unwrap_key(key, alg, self.ciphertext)

        raise UnsupportedAlgorithm(alg)

    @classmethod
    def from_cbor(cls, value):
        (protected, unprotected, ciphertext) = _check_array(value, 3, "COSE_recipient")

        # Direct recipients may carry nil instead of an empty string
        if ciphertext is None:
            ciphertext = b''

        decoded = CoseRecipient(ciphertext=_check_bytes(ciphertext, "Recipient ciphertext"))
        decoded._load_headers(protected, unprotected)

        return decoded


def _recipients_from_cbor(value):
    if not _is_array(value) or len(value) == 0:
        raise MalformedMessage("Recipients must be a non-empty array")

    return [CoseRecipient.from_cbor(r) for r in value]


class CoseMessage(CoseStructure, metaclass=ABCMeta):

    cbor_tag = None

    def __init__(self,
                 protected: dict = None,
                 unprotected: dict = None,
                 payload: bytes = b'',
                 external_aad: bytes = b''):
        super().__init__(protected, unprotected)
        self.payload = payload
        self.external_aad = external_aad

    @property
    @abstractmethod
    def content(self) -> list:
        pass

    def serialize(self) -> bytes:
        return dumps(CBORTag(self.cbor_tag, self.content))

    @classmethod
    @abstractmethod
    def from_cbor(cls, value, external_aad: bytes = b''):
        pass


class Sign1Message(CoseMessage):

    cbor_tag = Tag.COSE_SIGN1

    def __init__(self, protected=None, unprotected=None, payload=b'', external_aad=b'', signature=b''):
        super().__init__(protected, unprotected, payload, external_aad)
        self.signature = signature

    @property
    def content(self):
        return [self.encoded_protected, self.unprotected, self.payload, self.signature]

    def _to_be_signed(self) -> bytes:
        return dumps(sign_structure("Signature1", self.encoded_protected, self.payload, self.external_aad))

    def sign(self, key, backend):
        self.signature = backend.sign(key, self.alg, self._to_be_signed())

    def verify(self, key, backend) -> bool:
        return backend.verify(key, self.alg, self._to_be_signed(), self.signature)

    @classmethod
    def from_cbor(cls, value, external_aad=b''):
        (protected, unprotected, payload, signature) = _check_array(value, 4, "COSE_Sign1")

        msg = Sign1Message(payload=_check_bytes(payload, "Payload"),
                           external_aad=external_aad,
                           signature=_check_bytes(signature, "Signature"))
        msg._load_headers(protected, unprotected)

        return msg


class SignMessage(CoseMessage):

    cbor_tag = Tag.COSE_SIGN

    def __init__(self, protected=None, unprotected=None, payload=b'', external_aad=b'', signatures=None):
        super().__init__(protected, unprotected, payload, external_aad)
        self.signatures = [] if signatures is None else list(signatures)

    @property
    def content(self):
        return [self.encoded_protected,
                self.unprotected,
                self.payload,
                [s.content for s in self.signatures]]

    def _to_be_signed(self, signature: CoseSignature) -> bytes:
        return dumps(sign_structure("Signature",
                                    self.encoded_protected,
                                    self.payload,
                                    self.external_aad,
                                    signature.encoded_protected))

    def add_signature(self, key, alg: int, kid: bytes, backend):
        unprotected = {} if kid is None else {Header.KID: kid}
        signature = CoseSignature(protected={Header.ALG: alg}, unprotected=unprotected)

        signature.signature = backend.sign(key, alg, self._to_be_signed(signature))
        self.signatures.append(signature)

    def verify_signature(self, signature: CoseSignature, key, backend) -> bool:
        return backend.verify(key, signature.alg, self._to_be_signed(signature), signature.signature)

    @classmethod
    def from_cbor(cls, value, external_aad=b''):
        (protected, unprotected, payload, signatures) = _check_array(value, 4, "COSE_Sign")

        if not _is_array(signatures) or len(signatures) == 0:
            raise MalformedMessage("Signatures must be a non-empty array")

        msg = SignMessage(payload=_check_bytes(payload, "Payload"),
                          external_aad=external_aad,
                          signatures=[CoseSignature.from_cbor(s) for s in signatures])
        msg._load_headers(protected, unprotected)

        return msg


class Mac0Message(CoseMessage):

    cbor_tag = Tag.COSE_MAC0
    structure_context = "MAC0"

    def __init__(self, protected=None, unprotected=None, payload=b'', external_aad=b'', tag=b''):
        super().__init__(protected, unprotected, payload, external_aad)
        self.tag = tag

    @property
    def content(self):
        return [self.encoded_protected, self.unprotected, self.payload, self.tag]

    def _to_be_maced(self) -> bytes:
        return dumps([self.structure_context, self.encoded_protected, self.external_aad, self.payload])

    def create(self, key: bytes, backend):
        self.tag = backend.mac(key, self.alg, self._to_be_maced())

    def verify(self, key: bytes, backend) -> bool:
        return backend.mac_verify(key, self.alg, self._to_be_maced(), self.tag)

    @classmethod
    def from_cbor(cls, value, external_aad=b''):
        (protected, unprotected, payload, tag) = _check_array(value, 4, "COSE_Mac0")

        msg = Mac0Message(payload=_check_bytes(payload, "Payload"),
                          external_aad=external_aad,
                          tag=_check_bytes(tag, "Tag"))
        msg._load_headers(protected, unprotected)

        return msg


class MacMessage(Mac0Message):

    cbor_tag = Tag.COSE_MAC
    structure_context = "MAC"

    def __init__(self, protected=None, unprotected=None, payload=b'', external_aad=b'', tag=b'', recipients=None):
        super().__init__(protected, unprotected, payload, external_aad, tag)
        self.recipients = [] if recipients is None else list(recipients)

    @property
    def content(self):
        return [*super().content, [r.content for r in self.recipients]]

    @classmethod
    def from_cbor(cls, value, external_aad=b''):
        (protected, unprotected, payload, tag, recipients) = _check_array(value, 5, "COSE_Mac")

        msg = MacMessage(payload=_check_bytes(payload, "Payload"),
                         external_aad=external_aad,
                         tag=_check_bytes(tag, "Tag"),
                         recipients=_recipients_from_cbor(recipients))
        msg._load_headers(protected, unprotected)

        return msg


class Encrypt0Message(CoseMessage):

    cbor_tag = Tag.COSE_ENCRYPT0
    structure_context = "Encrypt0"

    def __init__(self, protected=None, unprotected=None, plaintext=b'', external_aad=b'', ciphertext=b''):
        super().__init__(protected, unprotected, plaintext, external_aad)
        self.ciphertext = ciphertext

    @property
    def content(self):
        return [self.encoded_protected, self.unprotected, self.ciphertext]

    def enc_structure(self) -> bytes:
        return dumps([self.structure_context, self.encoded_protected, self.external_aad])

    def encrypt(self, key: bytes, backend, iv: bytes = None):
        """
        Encrypt the payload, a fresh IV is drawn from the backend unless iv is given
        """
        if self.alg not in AEAD_ALGORITHMS:
            raise UnsupportedAlgorithm(self.alg)

        if iv is None:
            (_, _, nonce_length) = AEAD_ALGORITHMS[self.alg]
            iv = backend.random_bytes(nonce_length)

        self.unprotected[Header.IV] = iv
        self.ciphertext = backend.encrypt(key, self.alg, iv, self.payload, self.enc_structure())

    def decrypt(self, key: bytes, backend) -> bytes:
        iv = self.find_attribute(Header.IV)
        if not isinstance(iv, bytes):
            raise DecryptionFailed("Missing IV")

        self.payload = backend.decrypt(key, self.alg, iv, self.ciphertext, self.enc_structure())

        return self.payload

    @classmethod
    def from_cbor(cls, value, external_aad=b''):
        (protected, unprotected, ciphertext) = _check_array(value, 3, "COSE_Encrypt0")

        msg = Encrypt0Message(external_aad=external_aad,
                              ciphertext=_check_bytes(ciphertext, "Ciphertext"))
        msg._load_headers(protected, unprotected)

        return msg


class EncryptMessage(Encrypt0Message):

    cbor_tag = Tag.COSE_ENCRYPT
    structure_context = "Encrypt"

    def __init__(self, protected=None, unprotected=None, plaintext=b'', external_aad=b'', ciphertext=b'',
                 recipients=None):
        super().__init__(protected, unprotected, plaintext, external_aad, ciphertext)
        self.recipients = [] if recipients is None else list(recipients)

    @property
    def content(self):
        return [*super().content, [r.content for r in self.recipients]]

    @classmethod
    def from_cbor(cls, value, external_aad=b''):
        (protected, unprotected, ciphertext, recipients) = _check_array(value, 4, "COSE_Encrypt")

        msg = EncryptMessage(external_aad=external_aad,
                             ciphertext=_check_bytes(ciphertext, "Ciphertext"),
                             recipients=_recipients_from_cbor(recipients))
        msg._load_headers(protected, unprotected)

        return msg


_message_types = {
    Tag.COSE_SIGN: SignMessage,
    Tag.COSE_SIGN1: Sign1Message,
    Tag.COSE_MAC: MacMessage,
    Tag.COSE_MAC0: Mac0Message,
    Tag.COSE_ENCRYPT: EncryptMessage,
    Tag.COSE_ENCRYPT0: Encrypt0Message,
}


def decode(encoded: bytes, external_aad: bytes = b'') -> CoseMessage:
    """
    Parse a tagged COSE message
    :param encoded: untrusted input
    :return: the message, nothing in it has been verified yet
    :raises MalformedMessage: if encoded is not one of the six tagged COSE messages
    """
    decoded = decode_cbor(encoded)

    if not isinstance(decoded, CBORTag) or decoded.tag not in _message_types:
        raise MalformedMessage("Unknown or untagged COSE message")

    return _message_types[decoded.tag].from_cbor(decoded.value, external_aad=external_aad)
