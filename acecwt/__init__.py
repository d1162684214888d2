from .errors import (AceException, ClaimDecodeError, UnknownAbbreviation, InvalidKeyType, ContextError,
                     MissingKeyMaterial, InvalidKeyMaterial, EncodeError, CryptoFailure, DecodeError,
                     UnknownEnvelope, NoValidSignature, SignatureInvalid, NoValidKey, ValidationFailed)
from .cbor import Keys, ABBREV, abbreviate, unabbreviate, get_abbrev
from .cose import Algorithm, CoseKey, CryptoBackend, default_backend
from .crypto_ctx import (CwtCryptoCtx, Signer, Recipient, sign_create, sign_verify, sign1_create, sign1_verify,
                         mac, mac0, encrypt, encrypt0)
from .access_token import AccessToken, is_valid, expired
from .cwt import CWT
