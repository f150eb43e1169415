import os
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from poracle.oracle import Oracle
from poracle.ordering import HintLike


class LocalOracle(Oracle):
    """In-process AES-CBC padding oracle holding its own key.

    Useful as a reference when testing the attack: `encrypt()` produces the
    ciphertext, `attempt_decrypt()` leaks nothing but padding validity.
    """

    name = "local AES-CBC"

    def __init__(self, key: Optional[bytes] = None, iv: Optional[bytes] = None,
                 character_set: Optional[HintLike] = None):
        self.key = key if key is not None else os.urandom(16)
        if len(self.key) not in (16, 24, 32):
            raise ValueError(f"Invalid AES key length: {len(self.key)}")
        self.iv = iv if iv is not None else bytes(self.block_size)
        self._character_set = character_set

    @property
    def block_size(self) -> int:
        return algorithms.AES.block_size // 8

    def encrypt(self, plaintext: bytes) -> bytes:
        """PKCS#7 pad and encrypt under this oracle's key and IV. The IV is not included."""
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self.key), modes.CBC(self.iv)).encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    def decrypt_raw(self, ciphertext: bytes, iv: Optional[bytes] = None) -> bytes:
        """Plain CBC decryption, padding left in place."""
        decryptor = Cipher(algorithms.AES(self.key), modes.CBC(iv or self.iv)).decryptor()
        return decryptor.update(ciphertext) + decryptor.finalize()

    def attempt_decrypt(self, buffer: bytes) -> bool:
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        try:
            unpadder.update(self.decrypt_raw(buffer))
            unpadder.finalize()
        except ValueError:
            return False
        return True

    def character_set(self) -> Optional[HintLike]:
        return self._character_set
