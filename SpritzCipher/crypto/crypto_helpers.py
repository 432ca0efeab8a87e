import os, sys, hmac
from typing import Optional


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from spritz_cli import Spritz, DEFAULT_DIGEST_LEN, DEFAULT_MAC_LEN

# Each helper builds its own Spritz instance, so they are safe to call from
# several threads at once.

def encrypt_bytes(key: bytes, plaintext: bytes, iv: Optional[bytes] = None) -> bytes:
    return bytes(Spritz().encrypt(bytearray(plaintext), key, iv))

def decrypt_bytes(key: bytes, ciphertext: bytes, iv: Optional[bytes] = None) -> bytes:
    """Decrypt ``ciphertext``. A wrong key or IV returns garbage, not an error."""
    return bytes(Spritz().decrypt(bytearray(ciphertext), key, iv))

def keystream(key: bytes, nbytes: int, iv: Optional[bytes] = None) -> bytes:
    return encrypt_bytes(key, bytes(nbytes), iv)

def hash_bytes(message: bytes, digest_length: int = DEFAULT_DIGEST_LEN) -> bytes:
    return Spritz().hash(message, digest_length)

def hash_hex(message: bytes, digest_length: int = DEFAULT_DIGEST_LEN) -> str:
    return hash_bytes(message, digest_length).hex()

def mac_bytes(key: bytes, message: bytes, code_length: int = DEFAULT_MAC_LEN) -> bytes:
    return Spritz().mac(message, key, code_length)

def verify_mac(key: bytes, message: bytes, code: bytes) -> bool:
    """Check ``code`` against a fresh MAC of the same length."""
    if not 1 <= len(code) <= 255:
        return False
    return hmac.compare_digest(mac_bytes(key, message, len(code)), code)
