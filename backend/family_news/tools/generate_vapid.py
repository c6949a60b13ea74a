"""Print a fresh VAPID key pair in the format Settings expects.

    family-news-generate-vapid >> .env
"""

import base64

from cryptography.hazmat.primitives.asymmetric import ec


def b64url(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).rstrip(b"=").decode("ascii")


def generate_keys() -> tuple[str, str]:
    """Return (public, private) as base64url: uncompressed P-256 point, raw scalar."""
    priv = ec.generate_private_key(ec.SECP256R1())
    numbers = priv.public_key().public_numbers()
    pub_bytes = b"\x04" + numbers.x.to_bytes(32, "big") + numbers.y.to_bytes(32, "big")
    priv_bytes = priv.private_numbers().private_value.to_bytes(32, "big")
    return b64url(pub_bytes), b64url(priv_bytes)


def main() -> None:
    public_key, private_key = generate_keys()
    print(f"VAPID_PUBLIC_KEY={public_key}")
    print(f"VAPID_PRIVATE_KEY={private_key}")


if __name__ == "__main__":
    main()
