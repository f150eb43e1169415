import os
from enum import Enum
from typing import Dict

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
import structlog


log = structlog.get_logger()

BLOCK_SIZE = algorithms.AES.block_size // 8

# Generated on first use and kept for the life of the process.
_KEYS: Dict["CipherSuite", bytes] = {}
_STATIC_IVS: Dict["CipherSuite", bytes] = {}


class CipherSuite(str, Enum):
    AES_128_CBC = "AES-128-CBC"
    AES_256_CBC = "AES-256-CBC"

    def __str__(self):
        return self.value

    @property
    def key_size(self) -> int:
        match self:
            case CipherSuite.AES_128_CBC:
                return 16
            case CipherSuite.AES_256_CBC:
                return 32
            case _:
                raise ValueError(f"Invalid algorithm: {self}")


def get_key(algorithm: CipherSuite) -> bytes:
    """Returns the service key for the given algorithm, creating it on first use."""
    algorithm = CipherSuite(algorithm)
    if algorithm not in _KEYS:
        _KEYS[algorithm] = os.urandom(algorithm.key_size)
        log.info("generated key", cipher=str(algorithm), key_len=algorithm.key_size)
    return _KEYS[algorithm]


def get_iv(algorithm: CipherSuite, random: bool = True) -> bytes:
    """Returns a random IV, or the per-process static one when random is False."""
    algorithm = CipherSuite(algorithm)
    if random:
        return os.urandom(BLOCK_SIZE)
    if algorithm not in _STATIC_IVS:
        _STATIC_IVS[algorithm] = os.urandom(BLOCK_SIZE)
    return _STATIC_IVS[algorithm]


def encrypt(algorithm: CipherSuite, key: bytes, iv: bytes, plaintext: bytes) -> bytes:
    """ Encrypts the plaintext with PKCS#7 padding in CBC mode.
    The IV is prepended to the returned ciphertext.
    """
    CipherSuite(algorithm)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return iv + encryptor.update(padded) + encryptor.finalize()


def decrypt(algorithm: CipherSuite, key: bytes, ciphertext: bytes) -> bytes:
    """ Decrypts IV-prefixed ciphertext and removes the padding.
    Raises ValueError on bad length or bad padding.
    """
    CipherSuite(algorithm)
    if len(ciphertext) < 2 * BLOCK_SIZE or len(ciphertext) % BLOCK_SIZE:
        raise ValueError(f"Ciphertext must be at least two whole {BLOCK_SIZE} byte blocks (IV included)")

    iv = ciphertext[:BLOCK_SIZE]
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext[BLOCK_SIZE:]) + decryptor.finalize()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    return unpadder.update(padded) + unpadder.finalize()
