from collections.abc import Mapping

from cbor2 import loads, dumps
from ecdsa import VerifyingKey, SigningKey, curves as ecdsa_curves

from acecwt.cose.constants import Key


_ecdsa_curves = {
    Key.Curve.P_256: ecdsa_curves.NIST256p,
    Key.Curve.P_384: ecdsa_curves.NIST384p,
    Key.Curve.P_521: ecdsa_curves.NIST521p
}

_ecdsa_names = {
    "NIST256p": Key.Curve.P_256,
    "NIST384p": Key.Curve.P_384,
    "NIST521p": Key.Curve.P_521
}


def ecdsa_key_to_cose(key: VerifyingKey, kid: bytes = None, encode=True):
    if isinstance(key, SigningKey):
        key = key.get_verifying_key()

    # Raw encoding is x || y, each coordinate padded to the curve size
    point = key.to_string()
    size = len(point) // 2

    cbor = {
        Key.KTY: Key.Type.EC2,
        Key.CRV: _ecdsa_names[key.curve.name],
        Key.X: point[:size],
        Key.Y: point[size:]
    }

    if kid is not None:
        cbor.update({Key.KID: kid})

    if encode:
        return dumps(cbor)
    else:
        return cbor


def ecdsa_cose_to_key(decoded: dict) -> VerifyingKey:
    if decoded.get(Key.KTY) != Key.Type.EC2 or decoded.get(Key.CRV) not in _ecdsa_curves:
        raise ValueError("Not an EC2 key on a supported curve")

    curve = _ecdsa_curves[decoded[Key.CRV]]

    return VerifyingKey.from_string(decoded[Key.X] + decoded[Key.Y], curve=curve)


class CoseKey:
    """
    A key together with its key id, as carried in COSE_Key structures
    """

    class Type:
        ECDSA = 1
        SYMMETRIC = 2

    def __init__(self, key, key_id: bytes = None, ktype: Type = None):
        if ktype is None:
            ktype = CoseKey.Type.SYMMETRIC if isinstance(key, bytes) else CoseKey.Type.ECDSA

        self.key = key
        self.key_id = key_id
        self.ktype = ktype

    def encode(self, encode=True):
        """
        :return: the COSE_Key, as CBOR bytes or as map if encode is False
        """
        if self.ktype == CoseKey.Type.ECDSA:
            return ecdsa_key_to_cose(self.key, kid=self.key_id, encode=encode)

        cbor = {Key.KTY: Key.Type.SYMMETRIC, Key.K: self.key}
        if self.key_id is not None:
            cbor[Key.KID] = self.key_id

        return dumps(cbor) if encode else cbor

    @classmethod
    def from_cose(cls, encoded):
        """
        :param encoded: a COSE_Key as CBOR bytes or as already decoded map
        """
        decoded = loads(encoded) if isinstance(encoded, bytes) else encoded

        if not isinstance(decoded, Mapping):
            raise ValueError("COSE_Key must be a map")

        key_id = decoded.get(Key.KID)

        if decoded.get(Key.KTY) == Key.Type.SYMMETRIC:
            return CoseKey(decoded[Key.K], key_id, CoseKey.Type.SYMMETRIC)

        return CoseKey(ecdsa_cose_to_key(decoded), key_id, CoseKey.Type.ECDSA)

    def __eq__(self, other):
        if not isinstance(other, CoseKey):
            return NotImplemented

        return (self.ktype, self.key_id, self.encode()) == (other.ktype, other.key_id, other.encode())

    def __hash__(self):
        return hash(self.encode())
