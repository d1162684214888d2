class AceException(Exception):
    pass


class ClaimDecodeError(AceException):
    pass


class UnknownAbbreviation(ClaimDecodeError):
    def __init__(self, abbrev):
        super().__init__(f"Unknown claim abbreviation: {abbrev}")
        self.abbrev = abbrev


class InvalidKeyType(ClaimDecodeError):
    def __init__(self, key):
        super().__init__(f"Invalid key type in CWT claims map: {type(key).__name__}")


class ContextError(AceException):
    pass


class MissingKeyMaterial(ContextError):
    pass


class InvalidKeyMaterial(ContextError):
    pass


class EncodeError(AceException):
    pass


class CryptoFailure(EncodeError):
    pass


class DecodeError(AceException):
    pass


class UnknownEnvelope(DecodeError):
    def __init__(self, message="Unknown or invalid COSE crypto wrapper"):
        super().__init__(message)


class NoValidSignature(DecodeError):
    def __init__(self, message="No valid signature found"):
        super().__init__(message)


class SignatureInvalid(DecodeError):
    def __init__(self, message="Signature verification failed"):
        super().__init__(message)


class NoValidKey(DecodeError):
    def __init__(self, message="No valid key for content found"):
        super().__init__(message)


class ValidationFailed(DecodeError):
    def __init__(self, message="COSE object failed validation"):
        super().__init__(message)
