import os, sys, secrets
import numpy as np
ROOT = os.path.dirname(os.path.dirname(__file__))
sys.path.insert(0, ROOT)

from spritz_cli import Spritz

TRIALS = int(os.getenv("SPRITZ_TRIALS", "10"))

def run_roundtrip_tests(trials=TRIALS, max_len=300, use_iv=False):
    ok_all = True
    for t in range(1, trials + 1):
        key = secrets.token_bytes(1 + secrets.randbelow(64))
        iv  = secrets.token_bytes(16) if use_iv else None
        pt  = secrets.token_bytes(secrets.randbelow(max_len))

        ct = Spritz().encrypt(bytearray(pt), key, iv)
        dec = Spritz().decrypt(bytearray(ct), key, iv)

        same = (bytes(dec) == pt)
        ok_all = ok_all and same
        print(f"[{t:02d}] iv={use_iv}  equal={same}  ct_len={len(ct)}")
    return ok_all

def test_roundtrip_without_iv():
    assert run_roundtrip_tests(use_iv=False)

def test_roundtrip_with_iv():
    assert run_roundtrip_tests(use_iv=True)

def test_hello_world_roundtrip():
    pt = b"Hello World!"
    buf = bytearray(pt)
    Spritz().encrypt(buf, b"Secret")
    assert bytes(buf) != pt
    Spritz().decrypt(buf, b"Secret")
    assert bytes(buf) == pt

def test_encrypt_mutates_in_place():
    buf = bytearray(b"attack at dawn")
    out = Spritz().encrypt(buf, b"key")
    assert out is buf

def test_numpy_buffer_roundtrip():
    pt = np.arange(200, dtype=np.uint8)
    buf = pt.copy()
    Spritz().encrypt(buf, b"key", b"iv")
    Spritz().decrypt(buf, b"key", b"iv")
    assert np.array_equal(buf, pt)

def test_cipher_is_additive_not_xor():
    key = b"Secret"
    ks = Spritz().encrypt(bytearray(16), key)
    pt = bytes(range(100, 116))
    ct = Spritz().encrypt(bytearray(pt), key)
    assert bytes(ct) == bytes((p + k) & 0xFF for p, k in zip(pt, ks))

def test_iv_changes_keystream():
    key = b"Secret"
    plain = Spritz().encrypt(bytearray(32), key)
    with_iv = Spritz().encrypt(bytearray(32), key, b"nonce")
    other_iv = Spritz().encrypt(bytearray(32), key, b"nonce2")
    assert plain != with_iv
    assert with_iv != other_iv

def test_stop_symbol_separates_key_from_iv():
    # key "Sec" + iv "ret" must not collide with key "Secret"
    split = Spritz().encrypt(bytearray(32), b"Sec", b"ret")
    joined = Spritz().encrypt(bytearray(32), b"Secret")
    assert split != joined

def test_wrong_key_is_silent_garbage():
    pt = b"Hello World!" * 4
    ct = Spritz().encrypt(bytearray(pt), b"Secret")
    dec = Spritz().decrypt(bytearray(ct), b"secret")
    assert len(dec) == len(pt)
    assert bytes(dec) != pt

def test_empty_plaintext():
    assert Spritz().encrypt(bytearray(), b"key") == bytearray()

if __name__ == "__main__":
    ok = run_roundtrip_tests(use_iv=False) and run_roundtrip_tests(use_iv=True)
    print("RESULT:", "PASS" if ok else "FAIL")
