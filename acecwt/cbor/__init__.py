from .constants import Keys, ABBREV
from .cbor import abbreviate, unabbreviate, get_abbrev
