"""Loading of the developer's EC signing key."""

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey


def load_ec_private_key(pem: str) -> EllipticCurvePrivateKey:
    """Load a PKCS#8 EC private key (an Apple ``.p8`` file's contents)."""
    loaded = serialization.load_pem_private_key(
        pem.replace("\\n", "\n").encode(), password=None
    )
    if not isinstance(loaded, EllipticCurvePrivateKey):
        raise ValueError("signing key is not an EC private key")
    return loaded
