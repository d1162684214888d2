class Keys:
    """
    Integer abbreviations of CWT claims and ACE parameters
    """
    ISS               = 1   # tstr
    SUB               = 2   # tstr
    AUD               = 3   # tstr
    EXP               = 4   # epoch-based date/time
    NBF               = 5   # epoch-based date/time
    IAT               = 6   # epoch-based date/time
    CTI               = 7   # bstr
    CLIENT_ID         = 8   # tstr
    CLIENT_SECRET     = 9   # bstr
    RESPONSE_TYPE     = 10
    REDIRECT_URI      = 11
    SCOPE             = 12
    STATE             = 13
    CODE              = 14  # bstr
    ERROR_DESCRIPTION = 15
    ERROR_URI         = 16
    GRANT_TYPE        = 17  # uint
    ACCESS_TOKEN      = 18
    TOKEN_TYPE        = 19  # uint
    EXPIRES_IN        = 20  # uint
    USERNAME          = 21
    PASSWORD          = 22
    REFRESH_TOKEN     = 23
    CNF               = 24  # map
    PROFILE           = 25  # uint
    TOKEN             = 26
    TOKEN_TYPE_HINT   = 27
    ACTIVE            = 28  # bool
    CLIENT_TOKEN      = 29  # map
    RS_CNF            = 30  # map


# Position 0 is reserved
ABBREV = ("", "iss", "sub", "aud", "exp", "nbf", "iat", "cti",
          "client_id", "client_secret", "response_type", "redirect_uri",
          "scope", "state", "code", "error_description", "error_uri",
          "grant_type", "access_token", "token_type", "expires_in",
          "username", "password", "refresh_token", "cnf", "profile",
          "token", "token_type_hint", "active", "client_token", "rs_cnf")
