from .constants import Tag, Header, Algorithm, Key
from .cose import (CoseException, UnsupportedAlgorithm, DecryptionFailed, MalformedMessage,
                   Sign1Message, SignMessage, Mac0Message, MacMessage, Encrypt0Message, EncryptMessage,
                   CoseSignature, CoseRecipient, decode)
from .key import CoseKey
from .backend import CryptoBackend, DefaultBackend, default_backend
