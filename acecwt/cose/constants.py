class Tag:
    COSE_SIGN     = 98
    COSE_SIGN1    = 18
    COSE_ENCRYPT  = 96
    COSE_ENCRYPT0 = 16
    COSE_MAC      = 97
    COSE_MAC0     = 17


class Header:
    ALG = 1  # int / tstr
    CRIT = 2
    CONTENT_TYPE = 3  # tstr / uint
    KID = 4  # bstr
    IV = 5  # bstr
    PARTIAL_IV = 6  # bstr
    COUNTER_SIGNATURE = 7  # COSE_Signature


class Algorithm:
    ES256 = -7
    ES384 = -35
    ES512 = -36

    DIRECT = -6
    A128KW = -3
    A192KW = -4
    A256KW = -5

    HMAC_256_64 = 4
    HMAC_256_256 = 5
    HMAC_384_384 = 6
    HMAC_512_512 = 7

    A128GCM = 1
    A192GCM = 2
    A256GCM = 3
    AES_CCM_16_64_128 = 10
    AES_CCM_16_64_256 = 11
    AES_CCM_64_64_128 = 12
    AES_CCM_64_64_256 = 13
    AES_CCM_16_128_128 = 30
    AES_CCM_16_128_256 = 31
    AES_CCM_64_128_128 = 32
    AES_CCM_64_128_256 = 33


KEY_WRAP_ALGORITHMS = (Algorithm.A128KW, Algorithm.A192KW, Algorithm.A256KW)

# alg: (hash name, tag length in bytes)
MAC_ALGORITHMS = {
    Algorithm.HMAC_256_64: ('sha256', 8),
    Algorithm.HMAC_256_256: ('sha256', 32),
    Algorithm.HMAC_384_384: ('sha384', 48),
    Algorithm.HMAC_512_512: ('sha512', 64),
}

# alg: (key length, tag length, nonce length), all in bytes
AEAD_ALGORITHMS = {
    Algorithm.A128GCM: (16, 16, 12),
    Algorithm.A192GCM: (24, 16, 12),
    Algorithm.A256GCM: (32, 16, 12),
    Algorithm.AES_CCM_16_64_128: (16, 8, 13),
    Algorithm.AES_CCM_16_64_256: (32, 8, 13),
    Algorithm.AES_CCM_64_64_128: (16, 8, 7),
    Algorithm.AES_CCM_64_64_256: (32, 8, 7),
    Algorithm.AES_CCM_16_128_128: (16, 16, 13),
    Algorithm.AES_CCM_16_128_256: (32, 16, 13),
    Algorithm.AES_CCM_64_128_128: (16, 16, 7),
    Algorithm.AES_CCM_64_128_256: (32, 16, 7),
}

GCM_ALGORITHMS = (Algorithm.A128GCM, Algorithm.A192GCM, Algorithm.A256GCM)

KEY_WRAP_LENGTHS = {
    Algorithm.A128KW: 16,
    Algorithm.A192KW: 24,
    Algorithm.A256KW: 32,
}

# Content key length for MACs created under key wrap
MAC_KEY_LENGTHS = {
    Algorithm.HMAC_256_64: 32,
    Algorithm.HMAC_256_256: 32,
    Algorithm.HMAC_384_384: 48,
    Algorithm.HMAC_512_512: 64,
}


class Key:
    KTY = 1  # tstr
    KID = 2  # bstr
    ALG = 3  # tstr / int
    KEY_OPS = 4  # [(tstr/int)]
    BASE_IV = 5  # bstr

    CRV = -1
    X = -2
    Y = -3
    D = -4

    K = -1  # symmetric key value

    COSE_KEY = 1
    ENCRYPTED_COSE_KEY = 2

    class Type:
        OKP = 1
        EC2 = 2
        SYMMETRIC = 4

    class Curve:
        P_256 = 1
        P_384 = 2
        P_521 = 3
        X25519 = 4
        X448 = 5
        Ed25519 = 6
        Ed449 = 7
