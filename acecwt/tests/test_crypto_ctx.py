import unittest

from ecdsa import SigningKey, NIST256p

import acecwt.crypto_ctx as ctx
from acecwt.cose import CoseKey
from acecwt.cose.constants import Algorithm, Tag
from acecwt.crypto_ctx import Signer, Recipient
from acecwt.errors import ContextError, MissingKeyMaterial, InvalidKeyMaterial


class TestCryptoCtx(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.private_key = SigningKey.generate(curve=NIST256p)
        cls.public_key = cls.private_key.get_verifying_key()

    def test_tags(self):
        key = bytes(16)

        assert(ctx.sign1_create(self.private_key, Algorithm.ES256).tag == Tag.COSE_SIGN1)
        assert(ctx.sign_verify(self.public_key, Algorithm.ES256).tag == Tag.COSE_SIGN)
        assert(ctx.mac([Recipient(key)], Algorithm.HMAC_256_256).tag == Tag.COSE_MAC)
        assert(ctx.mac0(key, Algorithm.HMAC_256_256).tag == Tag.COSE_MAC0)
        assert(ctx.encrypt([Recipient(key)], Algorithm.AES_CCM_16_64_128).tag == Tag.COSE_ENCRYPT)
        assert(ctx.encrypt0(key, Algorithm.AES_CCM_16_64_128).tag == Tag.COSE_ENCRYPT0)

    def test_algorithm_required(self):
        with self.assertRaises(MissingKeyMaterial):
            ctx.sign1_create(self.private_key, None)

        with self.assertRaises(MissingKeyMaterial):
            ctx.mac0(bytes(16), None)

        with self.assertRaises(MissingKeyMaterial):
            ctx.mac([Recipient(bytes(16), alg=None)], Algorithm.HMAC_256_256)

    def test_algorithm_type(self):
        for alg in ([5], b'\x05', 5.0, True, {}):
            with self.assertRaises(InvalidKeyMaterial):
                ctx.mac([Recipient(bytes(32))], alg)

            with self.assertRaises(InvalidKeyMaterial):
                ctx.mac0(bytes(32), alg)

            with self.assertRaises(InvalidKeyMaterial):
                ctx.encrypt([Recipient(bytes(16), alg)], Algorithm.AES_CCM_16_64_128)

            with self.assertRaises(InvalidKeyMaterial):
                ctx.sign_create([Signer(self.private_key, alg)], Algorithm.ES256)

            with self.assertRaises(ContextError):
                ctx.sign1_verify(self.public_key, alg)

        assert(ctx.mac0(bytes(32), "HS256").alg == "HS256")

    def test_missing_keys(self):
        with self.assertRaises(MissingKeyMaterial):
            ctx.sign1_create(None, Algorithm.ES256)

        with self.assertRaises(MissingKeyMaterial):
            ctx.sign1_verify(None, Algorithm.ES256)

        with self.assertRaises(MissingKeyMaterial):
            ctx.sign_create([], Algorithm.ES256)

        with self.assertRaises(MissingKeyMaterial):
            ctx.sign_create([Signer(None)], Algorithm.ES256)

        with self.assertRaises(MissingKeyMaterial):
            ctx.encrypt([], Algorithm.AES_CCM_16_64_128)

        with self.assertRaises(MissingKeyMaterial):
            ctx.mac([Recipient(None)], Algorithm.HMAC_256_256)

        with self.assertRaises(MissingKeyMaterial):
            ctx.encrypt0(b'', Algorithm.AES_CCM_16_64_128)

    def test_capabilities_match_factory(self):
        with self.assertRaises(InvalidKeyMaterial):
            ctx.sign1_verify(self.private_key, Algorithm.ES256)

        with self.assertRaises(InvalidKeyMaterial):
            ctx.sign_verify(self.private_key, Algorithm.ES256)

        with self.assertRaises(InvalidKeyMaterial):
            ctx.sign1_create(self.public_key, Algorithm.ES256)

        with self.assertRaises(InvalidKeyMaterial):
            ctx.sign_create([Signer(self.public_key)], Algorithm.ES256)

        with self.assertRaises(InvalidKeyMaterial):
            ctx.mac0("not bytes", Algorithm.HMAC_256_256)

    def test_errors_are_context_errors(self):
        with self.assertRaises(ContextError):
            ctx.mac0(None, Algorithm.HMAC_256_256)

    def test_signer_defaults(self):
        c = ctx.sign_create([Signer(self.private_key),
                             Signer(self.private_key, Algorithm.ES384, b'as-2')], Algorithm.ES256)

        assert(c.signers[0] == Signer(self.private_key, Algorithm.ES256, None))
        assert(c.signers[1].alg == Algorithm.ES384)
        assert(c.signers[1].kid == b'as-2')
        assert(c.public_key is None)

    def test_cose_key_provides_key_id(self):
        cose_key = CoseKey(self.public_key, b'as-key')

        assert(ctx.sign_verify(cose_key, Algorithm.ES256).kid == b'as-key')
        assert(ctx.sign_verify(cose_key, Algorithm.ES256, kid=b'other').kid == b'other')
        assert(ctx.sign_verify(cose_key, Algorithm.ES256).public_key is self.public_key)

        recipients = ctx.mac([Recipient(CoseKey(bytes(16), b'rs-1'), Algorithm.A128KW)],
                             Algorithm.HMAC_256_256).recipients
        assert(recipients == (Recipient(bytes(16), Algorithm.A128KW, b'rs-1'),))

    def test_recipient_defaults_to_direct(self):
        recipients = ctx.encrypt([Recipient(bytes(16))], Algorithm.AES_CCM_16_64_128).recipients

        assert(recipients[0].alg == Algorithm.DIRECT)
        assert(recipients[0].kid is None)

    def test_immutable(self):
        c = ctx.mac0(bytes(16), Algorithm.HMAC_256_256)

        with self.assertRaises(AttributeError):
            c.alg = Algorithm.HMAC_256_64

        with self.assertRaises(AttributeError):
            c.recipients = ()

    def test_kinds_are_distinct(self):
        key = bytes(16)

        assert(ctx.mac0(key, 10) != ctx.encrypt0(key, 10))
        assert(ctx.mac0(key, 10) == ctx.mac0(key, 10))


if __name__ == '__main__':
    unittest.main()
