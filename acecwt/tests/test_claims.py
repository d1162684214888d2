import unittest

from acecwt.cbor import ABBREV, Keys as CK, abbreviate, unabbreviate, get_abbrev
from acecwt.errors import ClaimDecodeError, UnknownAbbreviation, InvalidKeyType


class TestClaimCodec(unittest.TestCase):

    def test_table(self):
        expected = "iss,sub,aud,exp,nbf,iat,cti,client_id,client_secret,response_type,redirect_uri,scope," \
                   "state,code,error_description,error_uri,grant_type,access_token,token_type,expires_in," \
                   "username,password,refresh_token,cnf,profile,token,token_type_hint,active,client_token,rs_cnf"

        assert(ABBREV[0] == "")
        assert(list(ABBREV[1:]) == expected.split(","))
        assert(len(set(ABBREV)) == len(ABBREV))

    def test_constants_match_table(self):
        assert(ABBREV[CK.ISS] == "iss")
        assert(ABBREV[CK.CTI] == "cti")
        assert(ABBREV[CK.SCOPE] == "scope")
        assert(ABBREV[CK.CNF] == "cnf")
        assert(ABBREV[CK.RS_CNF] == "rs_cnf")

    def test_get_abbrev(self):
        assert(get_abbrev("iss") == 1)
        assert(get_abbrev("grant_type") == 17)
        assert(get_abbrev("rs_cnf") == 30)
        assert(get_abbrev("cks") == -1)
        assert(get_abbrev("") == -1)

    def test_abbreviate(self):
        claims = {"iss": "coap://as.example.com", "exp": 1444064944, "cks": b'\x01'}

        assert(abbreviate(claims) == {1: "coap://as.example.com", 4: 1444064944, "cks": b'\x01'})

    def test_abbreviate_rejects_non_string_names(self):
        with self.assertRaises(TypeError):
            abbreviate({1: "coap://as.example.com"})

    def test_unabbreviate(self):
        content = {1: "coap://as.example.com", 12: "r+/s/light", "cks": {1: 2}}

        assert(unabbreviate(content) == {"iss": "coap://as.example.com", "scope": "r+/s/light", "cks": {1: 2}})

    def test_round_trip(self):
        claims = {name: index for index, name in enumerate(ABBREV) if index > 0}
        claims["application-claim"] = [1, 2, 3]

        assert(unabbreviate(abbreviate(claims)) == claims)

    def test_unknown_abbreviation(self):
        for key in (0, 31, 1000, -1):
            with self.assertRaises(UnknownAbbreviation):
                unabbreviate({key: "value"})

    def test_invalid_key_type(self):
        for key in (b'iss', 1.0, True, None):
            with self.assertRaises(InvalidKeyType):
                unabbreviate({key: "value"})

    def test_not_a_map(self):
        for content in ([1, 2], b'\xa0', "iss", None):
            with self.assertRaises(ClaimDecodeError):
                unabbreviate(content)

    def test_duplicate_claim(self):
        with self.assertRaises(ClaimDecodeError):
            unabbreviate({1: "a", "iss": "b"})


if __name__ == '__main__':
    unittest.main()
