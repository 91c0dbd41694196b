"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Streams file content through pluggable hash algorithms.

SHA-256 produces the 32-byte content fingerprint that decides duplicates.
xxHash64 over the first chunk is a cheap pre-filter only; it never
confirms a duplicate on its own.
"""

import hashlib
import logging
import xxhash
from keepone.core.models import FileCandidate
from keepone.core.interfaces import Hasher, HashAlgorithm, HashState
from keepone.core.errors import FileChangedError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


# Use the same way to implement and use any other hashing algorithm
class Sha256AlgorithmImpl(HashAlgorithm):
    name = "sha256"
    digest_size = 32

    @staticmethod
    def new() -> HashState:
        return hashlib.sha256()


class XXHashAlgorithmImpl(HashAlgorithm):
    name = "xxh64"
    digest_size = 8

    @staticmethod
    def new() -> HashState:
        return xxhash.xxh64()


class HasherImpl(Hasher):
    """
    Reads files in bounded chunks; the whole file is never held in memory.
    Read errors propagate as OSError so the calling stage can record them.
    """

    def __init__(
            self,
            algorithm: HashAlgorithm = None,
            quick_algorithm: HashAlgorithm = None,
            chunk_size: int = DEFAULT_CHUNK_SIZE
    ):
        self.algorithm = algorithm or Sha256AlgorithmImpl()
        self.quick_algorithm = quick_algorithm or XXHashAlgorithmImpl()
        self.chunk_size = chunk_size

    def compute_full_hash(self, file: FileCandidate) -> bytes:
        """
        Digest of the entire file content.
        Raises FileChangedError if the byte count no longer matches the indexed size.
        """
        state = self.algorithm.new()
        total = 0
        with open(file.path, 'rb') as f:
            for chunk in iter(lambda: f.read(self.chunk_size), b''):
                state.update(chunk)
                total += len(chunk)
        if total != file.size:
            raise FileChangedError(
                f"Size changed during scan: expected {file.size} bytes, read {total}"
            )
        digest = state.digest()
        logger.debug(f"{self.algorithm.name} {digest.hex()} {file.path}")
        return digest

    def compute_front_hash(self, file: FileCandidate) -> bytes:
        """Quick digest of the first chunk_size bytes."""
        state = self.quick_algorithm.new()
        with open(file.path, 'rb') as f:
            state.update(f.read(self.chunk_size))
        return state.digest()
