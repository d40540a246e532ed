import abc
import base64
import hashlib

from annotator.model import HASH_ALGORITHM, IntegrityResult


class DigestComputer(metaclass=abc.ABCMeta):
    """Turns an asset payload into an integrity value."""

    @abc.abstractmethod
    def compute(self, payload: bytes) -> IntegrityResult:
        raise NotImplementedError("Every digest computer must implement 'compute'.")


class DigestService(DigestComputer):
    """Base64 sha384 digests, the algorithm used for every integrity attribute."""

    algorithm = HASH_ALGORITHM

    def compute(self, payload: bytes) -> IntegrityResult:
        digest = hashlib.new(self.algorithm, payload).digest()
        return IntegrityResult(
            algorithm=self.algorithm,
            digest=base64.b64encode(digest).decode("ascii"),
        )
