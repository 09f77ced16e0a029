"""
Cryptographic primitives for sealbid.

Covers the digests the engine stores (SHA-256), Keccak-256 for account
addresses, secp256k1 keypairs, and the bid commitment hash checked by the
commit-reveal subsystem.

Hashing is delegated to hashlib and pycryptodome and treated as a
collision-resistant black box. Account identifiers are Ethereum-style
addresses (keccak256 of the public key, last 20 bytes) so vendors and
evaluators can be given stable identities without a separate identity layer.

Bid commitment layout (all integers big-endian):

    SHA-256( u128(rfp_id)
           | SHA-256(utf8(vendor))
           | u32(len(uri)) | uri
           | u128(deposit)
           | salt )

The uri is length-prefixed so that two distinct (uri, deposit, salt) tuples
can never share an encoding. Folding rfp_id and the vendor digest in prevents
replaying a commitment across RFPs or across vendors.
"""

import hashlib
import secrets
from dataclasses import dataclass

from Crypto.Hash import keccak
from py_ecc.secp256k1 import secp256k1


# =============================================================================
# Sizes
# =============================================================================

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# Every stored digest: commitments, deliverables, audit links
HASH_SIZE = 32

PRIVATE_KEY_SIZE = 32
PUBLIC_KEY_SIZE = 64
ADDRESS_SIZE = 20

U128_BYTES = 16
U128_MAX = 2**128 - 1


# =============================================================================
# Digests
# =============================================================================


def sha256(data: bytes) -> bytes:
    """SHA-256 digest; the hash behind commitments, deliverables and the audit chain."""
    return hashlib.sha256(data).digest()


def keccak256(data: bytes) -> bytes:
    """Keccak-256 (pre-NIST padding), used only for addresses."""
    return keccak.new(data=data, digest_bits=256).digest()


# =============================================================================
# Commitments
# =============================================================================


def identity_digest(account: str) -> bytes:
    """Digest of an account identifier, as folded into bid commitments."""
    return sha256(account.encode("utf-8"))


def u128(value: int) -> bytes:
    """Encode a non-negative integer as 16 big-endian bytes."""
    if value < 0 or value > U128_MAX:
        raise ValueError(f"Value {value} does not fit in u128")
    return value.to_bytes(U128_BYTES, byteorder="big")


def hash_bid_commitment(
    rfp_id: int,
    vendor: str,
    uri: str,
    deposit: int,
    salt: bytes,
) -> bytes:
    """
    Compute the sealed-bid commitment for a proposal.

    Args:
        rfp_id: RFP the bid is for
        vendor: Vendor account identifier
        uri: Proposal reference (revealed later)
        deposit: Declared deposit
        salt: Random blinding bytes

    Returns:
        32-byte commitment
    """
    uri_bytes = uri.encode("utf-8")
    preimage = (
        u128(rfp_id)
        + identity_digest(vendor)
        + len(uri_bytes).to_bytes(4, byteorder="big")
        + uri_bytes
        + u128(deposit)
        + salt
    )
    return sha256(preimage)


def random_salt(size: int = 32) -> bytes:
    """Generate a random blinding salt for a commitment."""
    return secrets.token_bytes(size)


# =============================================================================
# Accounts
# =============================================================================


@dataclass
class KeyPair:
    """secp256k1 keys; public_key is the raw x || y point without the 0x04 tag."""
    private_key: bytes
    public_key: bytes

    @property
    def address(self) -> str:
        """Account identifier derived from the public key."""
        return address_from_public_key(self.public_key)


def private_key_to_public_key(private_key: bytes) -> bytes:
    if len(private_key) != PRIVATE_KEY_SIZE:
        raise ValueError(f"private key is {len(private_key)} bytes, expected {PRIVATE_KEY_SIZE}")
    x, y = secp256k1.privtopub(private_key)
    return x.to_bytes(32, "big") + y.to_bytes(32, "big")


def generate_keypair() -> KeyPair:
    """Fresh keypair with a scalar drawn uniformly from [1, order - 1]."""
    scalar = 1 + secrets.randbelow(SECP256K1_ORDER - 1)
    private_key = scalar.to_bytes(PRIVATE_KEY_SIZE, "big")
    return KeyPair(private_key, private_key_to_public_key(private_key))


def address_from_public_key(public_key: bytes) -> str:
    """0x-prefixed hex of the trailing 20 bytes of keccak256(public_key)."""
    if len(public_key) != PUBLIC_KEY_SIZE:
        raise ValueError(f"public key is {len(public_key)} bytes, expected {PUBLIC_KEY_SIZE}")
    return bytes_to_hex(keccak256(public_key)[-ADDRESS_SIZE:])


# =============================================================================
# Hex
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Accepts an optional 0x/0X prefix."""
    if hex_str[:2].lower() == "0x":
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


def is_valid_address(address: str) -> bool:
    if len(address) != 2 + 2 * ADDRESS_SIZE or not address.startswith("0x"):
        return False
    try:
        bytes.fromhex(address[2:])
    except ValueError:
        return False
    return True
