import hashlib
import os
from abc import ABCMeta, abstractmethod

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, hmac, constant_time
from cryptography.hazmat.primitives.ciphers.aead import AESCCM, AESGCM
from cryptography.hazmat.primitives.keywrap import aes_key_wrap, aes_key_unwrap, InvalidUnwrap
from ecdsa import SigningKey, VerifyingKey, NIST256p, NIST384p, NIST521p, BadSignatureError
from ecdsa import util
from ecdsa.util import MalformedSignature

from acecwt.cose.constants import Algorithm, MAC_ALGORITHMS, AEAD_ALGORITHMS, GCM_ALGORITHMS, KEY_WRAP_LENGTHS
from acecwt.cose.cose import CoseException, UnsupportedAlgorithm, DecryptionFailed


class CryptoBackend(metaclass=ABCMeta):
    """
    The cryptographic primitives the COSE layer relies on. Keys are opaque
    to everything above this interface.
    """

    @abstractmethod
    def sign(self, key, alg: int, content: bytes) -> bytes:
        pass

    @abstractmethod
    def verify(self, key, alg: int, content: bytes, signature: bytes) -> bool:
        pass

    @abstractmethod
    def mac(self, key: bytes, alg: int, content: bytes) -> bytes:
        pass

    @abstractmethod
    def mac_verify(self, key: bytes, alg: int, content: bytes, tag: bytes) -> bool:
        pass

    @abstractmethod
    def encrypt(self, key: bytes, alg: int, nonce: bytes, plaintext: bytes, aad: bytes) -> bytes:
        pass

    @abstractmethod
    def decrypt(self, key: bytes, alg: int, nonce: bytes, ciphertext: bytes, aad: bytes) -> bytes:
        """
        :return: the plaintext
        :raises DecryptionFailed: if the ciphertext does not authenticate under key
        """
        pass

    @abstractmethod
    def wrap_key(self, kek: bytes, alg: int, cek: bytes) -> bytes:
        pass

    @abstractmethod
    def unwrap_key(self, kek: bytes, alg: int, wrapped: bytes) -> bytes:
        pass

    def random_bytes(self, length: int) -> bytes:
        return os.urandom(length)


_ecdsa_algorithms = {
    Algorithm.ES256: (NIST256p, hashlib.sha256),
    Algorithm.ES384: (NIST384p, hashlib.sha384),
    Algorithm.ES512: (NIST521p, hashlib.sha512),
}

_hashes = {
    'sha256': hashes.SHA256,
    'sha384': hashes.SHA384,
    'sha512': hashes.SHA512,
}


class DefaultBackend(CryptoBackend):
    """
    ECDSA through python-ecdsa, HMAC, AEAD and key wrap through cryptography
    """

    def sign(self, key, alg, content):
        hashfunc = self._ecdsa_params(key, alg, SigningKey)

        return key.sign_deterministic(content, hashfunc, sigencode=util.sigencode_string)

    def verify(self, key, alg, content, signature):
        hashfunc = self._ecdsa_params(key, alg, VerifyingKey)

        try:
            return key.verify(signature, content, hashfunc, sigdecode=util.sigdecode_string)
        except (BadSignatureError, MalformedSignature):
            return False

    def mac(self, key, alg, content):
        if alg not in MAC_ALGORITHMS:
            raise UnsupportedAlgorithm(alg)

        hash_name, tag_length = MAC_ALGORITHMS[alg]

        h = hmac.HMAC(self._check_bytes(key), _hashes[hash_name]())
        h.update(content)

        return h.finalize()[:tag_length]

    def mac_verify(self, key, alg, content, tag):
        return constant_time.bytes_eq(self.mac(key, alg, content), tag)

    def encrypt(self, key, alg, nonce, plaintext, aad):
        cipher = self._aead(key, alg, nonce)

        return cipher.encrypt(nonce, plaintext, aad)

    def decrypt(self, key, alg, nonce, ciphertext, aad):
        cipher = self._aead(key, alg, nonce)

        try:
            return cipher.decrypt(nonce, ciphertext, aad)
        except InvalidTag as err:
            raise DecryptionFailed() from err

    def wrap_key(self, kek, alg, cek):
        self._check_kek(kek, alg)

        try:
            return aes_key_wrap(kek, cek)
        except ValueError as err:
            raise CoseException(str(err)) from err

    def unwrap_key(self, kek, alg, wrapped):
        self._check_kek(kek, alg)

        try:
            return aes_key_unwrap(kek, wrapped)
        except (InvalidUnwrap, ValueError) as err:
            raise DecryptionFailed() from err

    @staticmethod
    def _ecdsa_params(key, alg, key_class):
        if alg not in _ecdsa_algorithms:
            raise UnsupportedAlgorithm(alg)

        if not isinstance(key, key_class):
            raise CoseException(f"Expected {key_class.__name__}, got {type(key).__name__}")

        curve, hashfunc = _ecdsa_algorithms[alg]
        if key.curve != curve:
            raise CoseException(f"Key on curve {key.curve.name} does not match algorithm {alg}")

        return hashfunc

    def _aead(self, key, alg, nonce):
        if alg not in AEAD_ALGORITHMS:
            raise UnsupportedAlgorithm(alg)

        key_length, tag_length, nonce_length = AEAD_ALGORITHMS[alg]

        if len(self._check_bytes(key)) != key_length:
            raise CoseException(f"Algorithm {alg} requires a {key_length} byte key")
        if len(nonce) != nonce_length:
            raise CoseException(f"Algorithm {alg} requires a {nonce_length} byte IV")

        if alg in GCM_ALGORITHMS:
            return AESGCM(key)

        return AESCCM(key, tag_length=tag_length)

    def _check_kek(self, kek, alg):
        if alg not in KEY_WRAP_LENGTHS:
            raise UnsupportedAlgorithm(alg)

        if len(self._check_bytes(kek)) != KEY_WRAP_LENGTHS[alg]:
            raise CoseException(f"Algorithm {alg} requires a {KEY_WRAP_LENGTHS[alg]} byte key")

    @staticmethod
    def _check_bytes(key) -> bytes:
        if not isinstance(key, bytes):
            raise CoseException(f"Expected a raw symmetric key, got {type(key).__name__}")

        return key


_default_backend = DefaultBackend()


def default_backend() -> CryptoBackend:
    return _default_backend
