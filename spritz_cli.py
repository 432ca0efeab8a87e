# spritz_cli.py
# Spritz sponge cipher core (stream / MAC / hash / basic) + CLI + visualizations
from __future__ import annotations
import argparse, os, binascii
from dataclasses import dataclass, field
from typing import List, Optional
import numpy as np

N = 256
HALF = N // 2
MAX_SQUEEZE = N
DEFAULT_DIGEST_LEN = 32
DEFAULT_MAC_LEN = 32

def _identity() -> np.ndarray:
    return np.arange(N, dtype=np.uint8)

def _check_length(name: str, n: int) -> None:
    # the length is absorbed as a single byte before squeezing
    if not 1 <= n <= 255:
        raise ValueError(f"{name} must be in 1..255, got {n}")

@dataclass
class Spritz:
    """One Spritz session: the permutation ``S`` plus registers a, i, j, k, w, z.

    Every public operation starts by resetting the state, so an instance can be
    reused sequentially, but never shared between threads without locking.
    Construct one per call when in doubt; they are cheap.
    """
    S: np.ndarray = field(default_factory=_identity)
    a: int = 0; i: int = 0; j: int = 0; k: int = 0; w: int = 1; z: int = 0

    # -- state --------------------------------------------------------------
    def initialize_state(self) -> None:
        self.a = self.i = self.j = self.k = self.z = 0; self.w = 1
        self.S = _identity()

    def swap(self, x: int, y: int) -> None:
        s = self.S
        s[x], s[y] = s[y], s[x]

    def is_permutation(self) -> bool:
        return self.S.shape == (N,) and np.array_equal(np.sort(self.S), _identity())

    def snapshot(self) -> np.ndarray:
        return self.S.reshape(16, 16).copy()

    # -- absorption ---------------------------------------------------------
    def absorb_nibble(self, v: int) -> None:
        if self.a == HALF:
            self.shuffle()
        self.swap(self.a, (HALF + v) & 0xFF)
        self.a += 1

    def absorb_byte(self, b: int) -> None:
        self.absorb_nibble(b & 0x0F)
        self.absorb_nibble(b >> 4)

    def absorb_stop(self) -> None:
        if self.a == HALF:
            self.shuffle()
        self.a += 1

    def absorb(self, data) -> None:
        for b in data:
            self.absorb_byte(int(b))

    # -- scrambler ----------------------------------------------------------
    def update(self) -> None:
        s = self.S
        self.i = (self.i + self.w) & 0xFF
        self.j = (self.k + int(s[(self.j + int(s[self.i])) & 0xFF])) & 0xFF
        self.k = (self.i + self.k + int(s[self.j])) & 0xFF
        self.swap(self.i, self.j)

    def whip(self) -> None:
        for _ in range(N * 2):
            self.update()
        self.w = (self.w + 2) & 0xFF

    def crush(self) -> None:
        s = self.S
        for v in range(HALF):
            t = N - 1 - v
            if s[v] > s[t]:
                self.swap(v, t)

    def shuffle(self) -> None:
        self.whip()
        self.crush()
        self.whip()
        self.crush()
        self.whip()
        self.a = 0

    # -- output -------------------------------------------------------------
    def output(self) -> int:
        s = self.S
        self.z = int(s[(self.j + int(s[(self.i + int(s[(self.z + self.k) & 0xFF])) & 0xFF])) & 0xFF])
        return self.z

    def drip(self) -> int:
        if self.a > 0:
            self.shuffle()
        self.update()
        return self.output()

    def squeeze(self, n: int) -> bytes:
        """Return ``min(n, 256)`` output bytes; anything past 256 is dropped."""
        if n < 0:
            raise ValueError(f"cannot squeeze a negative number of bytes ({n})")
        if self.a > 0:
            self.shuffle()
        return bytes(self.drip() for _ in range(min(n, MAX_SQUEEZE)))

    # -- public api ---------------------------------------------------------
    def key_setup(self, key) -> None:
        self.initialize_state()
        self.absorb(key)

    def _stream_setup(self, key, iv) -> None:
        self.key_setup(key)
        if iv is not None:
            self.absorb_stop()
            self.absorb(iv)

    def encrypt(self, data, key, iv=None):
        """Encrypt the mutable buffer ``data`` in place and return it.

        The keystream is added modulo 256 (not XORed), so :meth:`decrypt`
        must be used to invert it.
        """
        self._stream_setup(key, iv)
        for v in range(len(data)):
            data[v] = (int(data[v]) + self.drip()) & 0xFF
        return data

    def decrypt(self, data, key, iv=None):
        """Inverse of :meth:`encrypt`. A wrong key yields garbage, never an error."""
        self._stream_setup(key, iv)
        for v in range(len(data)):
            data[v] = (int(data[v]) - self.drip()) & 0xFF
        return data

    def mac(self, message, key, code_length: int = DEFAULT_MAC_LEN) -> bytes:
        _check_length("code_length", code_length)
        self.initialize_state()
        self.absorb(key)
        self.absorb_stop()
        self.absorb(message)
        self.absorb_stop()
        self.absorb([code_length])
        return self.squeeze(code_length)

    def hash(self, message, digest_length: int = DEFAULT_DIGEST_LEN) -> bytes:
        _check_length("digest_length", digest_length)
        self.initialize_state()
        self.absorb(message)
        self.absorb_stop()
        self.absorb([digest_length])
        return self.squeeze(digest_length)

    def basic(self, data, output_length: int) -> bytes:
        # raw sponge call, only meaningful for the published test vectors
        self.initialize_state()
        self.absorb(data)
        return self.squeeze(output_length)

def save_gif(frames_np: List[np.ndarray], path: str, fps: float):

    import imageio.v2 as imageio
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    dur = 1.0 / max(fps, 0.1)
    with imageio.get_writer(path, mode="I", duration=dur, loop=0) as w:
        for f in frames_np:
            w.append_data(f)

def dump_frames_png(frames_np: List[np.ndarray], folder: str, stem: str):

    from PIL import Image
    os.makedirs(folder, exist_ok=True)
    for i, f in enumerate(frames_np):
        Image.fromarray(f).save(os.path.join(folder, f"{stem}_{i:03d}.png"))

def _make_heatmap_lut() -> np.ndarray:
    stops = [
        (0,   (0,   0,  64)),   # dark blue
        (64,  (0,   0, 255)),   # blue
        (128, (0, 255, 255)),   # cyan
        (192, (255,255,  0)),   # yellow
        (255, (255,255,255)),   # white
    ]
    lut = np.zeros((256, 3), dtype=np.uint8)
    for i in range(len(stops) - 1):
        x0, c0 = stops[i]
        x1, c1 = stops[i+1]
        span = max(1, x1 - x0)
        for t in range(span):
            a = t / span
            lut[x0 + t] = tuple(int((1-a)*c0[ch] + a*c1[ch]) for ch in range(3))
    lut[255] = stops[-1][1]
    return lut

_HEATMAP_LUT = _make_heatmap_lut()

def to_heatmap(img_u8_2d: np.ndarray, scale: int = 1) -> np.ndarray:
    rgb = _HEATMAP_LUT[img_u8_2d]
    if scale > 1:
        rgb = np.repeat(np.repeat(rgb, scale, axis=0), scale, axis=1)
    return rgb

def visualize_absorption(message: bytes, out_gif_path: str, fps: float = 4.0,
                         scale: int = 16, dump_pngs_to: str | None = None) -> int:
    """Render ``S`` after each absorbed byte, then through each shuffle sub-step.

    The sub-steps replay the shuffle order (whip, crush, whip, crush, whip) one
    call at a time so each stage gets its own frame. Returns the frame count.
    """
    sp = Spritz()
    frames = [to_heatmap(sp.snapshot(), scale)]
    for b in message:
        if sp.a == HALF:
            print("[viz] absorption buffer full; shuffle before next nibble")
        sp.absorb_byte(b)
        frames.append(to_heatmap(sp.snapshot(), scale))

    if sp.a > 0:
        for step in (sp.whip, sp.crush, sp.whip, sp.crush, sp.whip):
            step()
            frames.append(to_heatmap(sp.snapshot(), scale))
        sp.a = 0
    if not sp.is_permutation():
        raise RuntimeError("permutation table lost its bijection during absorption")

    save_gif(frames, out_gif_path, fps)
    if dump_pngs_to: dump_frames_png(frames, dump_pngs_to, "absorb")
    print(f"[viz] absorbed={len(message)} bytes frames={len(frames)} -> {out_gif_path}")
    return len(frames)

def visualize_keystream_heatmap(key: bytes, iv: Optional[bytes], nbytes: int,
                                out_png_path: str, scale: int = 4) -> np.ndarray:
    from PIL import Image

    side = max(1, int(np.ceil(np.sqrt(nbytes))))
    buf = bytearray(side * side)
    Spritz().encrypt(buf, key, iv)
    frame = np.frombuffer(bytes(buf), dtype=np.uint8).reshape(side, side)
    os.makedirs(os.path.dirname(out_png_path) or ".", exist_ok=True)
    Image.fromarray(to_heatmap(frame, scale)).save(out_png_path)
    print(f"[viz] keystream {side}x{side} bytes -> {out_png_path}")
    return frame

def parse_hex_or_ascii(s: str) -> bytes:
    s = s.strip()
    try:
        if s.lower().startswith("0x"):
            return binascii.unhexlify(s[2:])
        return s.encode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise argparse.ArgumentTypeError(f"Bad hex/ASCII value {s!r}: {e}")

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Spritz stream cipher, MAC and hash with visualizations")
    src = p.add_mutually_exclusive_group()
    src.add_argument("--message", type=parse_hex_or_ascii, help="Input as text or 0x-prefixed hex")
    src.add_argument("--input", help="Read input bytes from this file")
    p.add_argument("--key", type=parse_hex_or_ascii, help="Key (text or 0x-prefixed hex)")
    p.add_argument("--iv", type=parse_hex_or_ascii, default=None, help="Optional IV (text or 0x-prefixed hex)")
    p.add_argument("--hash", type=int, default=0, metavar="N", help="Print an N-byte Spritz hash (1..255)")
    p.add_argument("--mac", type=int, default=0, metavar="N", help="Print an N-byte Spritz MAC (1..255, needs --key)")
    p.add_argument("--basic", type=int, default=0, metavar="N", help="Print N raw sponge bytes (conformance vectors)")
    p.add_argument("--out", default="out", help="Output directory")
    p.add_argument("--enc", action="store_true", help="Encrypt the input to <out>/ciphertext.bin")
    p.add_argument("--dec", default="", help="If set, decrypt <dec>/ciphertext.bin to <out>/decrypted.bin")
    p.add_argument("--make-gifs", action="store_true", help="Render absorption GIF and keystream heatmap")
    p.add_argument("--save-frames", action="store_true", help="Also dump individual PNG frames")
    p.add_argument("--fps", type=float, default=4.0, help="GIF frame rate (default 4)")
    return p

def main(argv: List[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    if args.input:
        with open(args.input, "rb") as f:
            data = f.read()
    else:
        data = args.message if args.message is not None else b""

    if (args.mac or args.enc or args.dec) and args.key is None:
        p.error("--mac, --enc and --dec require --key")

    try:
        if args.hash:
            print(f"[hash] {Spritz().hash(data, args.hash).hex()}")
        if args.mac:
            print(f"[mac] {Spritz().mac(data, args.key, args.mac).hex()}")
        if args.basic:
            print(f"[basic] {Spritz().basic(data, args.basic).hex()}")
    except ValueError as e:
        p.error(str(e))

    if args.enc:
        os.makedirs(args.out, exist_ok=True)
        ct = Spritz().encrypt(bytearray(data), args.key, args.iv)
        with open(os.path.join(args.out, "ciphertext.bin"), "wb") as f:
            f.write(ct)
        print(f"[enc] plaintext={len(data)} bytes  ciphertext={len(ct)} bytes  iv={'yes' if args.iv else 'no'}")

    if args.dec:
        with open(os.path.join(args.dec, "ciphertext.bin"), "rb") as f:
            ct = f.read()
        pt = Spritz().decrypt(bytearray(ct), args.key, args.iv)
        os.makedirs(args.out, exist_ok=True)
        with open(os.path.join(args.out, "decrypted.bin"), "wb") as f:
            f.write(pt)
        print(f"[dec] recovered={len(pt)} bytes")

    if args.make_gifs:
        frames_dir = os.path.join(args.out, "frames") if args.save_frames else None
        visualize_absorption(data, os.path.join(args.out, "absorption.gif"), fps=args.fps,
                             dump_pngs_to=frames_dir)
        if args.key is not None:
            visualize_keystream_heatmap(args.key, args.iv, 64 * 64,
                                        os.path.join(args.out, "keystream_heatmap.png"))
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
