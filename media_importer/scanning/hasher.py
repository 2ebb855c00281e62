import hashlib
from typing import BinaryIO

from .. import config

class FileHasher:
    """
    Whole-file content digest. Duplicate detection relies on nothing else,
    so every byte of the file is read.
    """
    def __init__(self, algorithm: str = config.HASH_ALGORITHM):
        self.algorithm = algorithm

    def hash_stream(self, stream: BinaryIO) -> str:
        h = hashlib.new(self.algorithm)
        while chunk := stream.read(config.HASH_CHUNK_SIZE):
            h.update(chunk)
        return h.hexdigest()
