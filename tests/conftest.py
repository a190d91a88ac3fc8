import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from compactsign import AlgorithmId

HMAC_SECRET = b"k" * 64


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_p256_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def ec_p521_key():
    return ec.generate_private_key(ec.SECP521R1())


@pytest.fixture(scope="session")
def signing_keys(rsa_key, ec_p256_key, ec_p521_key):
    """Map every algorithm to a (signing key, verification key) pair."""
    return {
        AlgorithmId.HS256: (HMAC_SECRET, HMAC_SECRET),
        AlgorithmId.HS512: (HMAC_SECRET, HMAC_SECRET),
        AlgorithmId.RS256: (rsa_key, rsa_key.public_key()),
        AlgorithmId.RS512: (rsa_key, rsa_key.public_key()),
        AlgorithmId.PS256: (rsa_key, rsa_key.public_key()),
        AlgorithmId.PS512: (rsa_key, rsa_key.public_key()),
        AlgorithmId.ES256: (ec_p256_key, ec_p256_key.public_key()),
        AlgorithmId.ES512: (ec_p521_key, ec_p521_key.public_key()),
    }


@pytest.fixture
def secret():
    return HMAC_SECRET
