import time
from typing import Optional

import requests
import structlog

from poracle.errors import OracleError
from poracle.oracle import Oracle
from poracle.ordering import HintLike
from poracle.utils import b64_encode

log = structlog.get_logger()


class RemoteOracle(Oracle):
    """Padding oracle backed by an HTTP validate endpoint.

    Each guess is POSTed as `{"alg": ..., "ciphertext_b64": ...}`. A 200 reply
    means the padding was valid, a 4xx reply means it was not. Anything else
    is a transport problem and raises OracleError.
    """

    name = "remote HTTP"

    def __init__(
        self,
        url: str,
        alg: str = "AES-128-CBC",
        block_size: int = 16,
        timeout: float = 10,
        delay: float = 0.0,
        character_set: Optional[HintLike] = None,
        session=None,
    ):
        self.url = url
        self.alg = alg
        self.timeout = timeout
        self.delay = delay
        self.session = session if session is not None else requests.Session()
        self._block_size = block_size
        self._character_set = character_set

    @property
    def block_size(self) -> int:
        return self._block_size

    def attempt_decrypt(self, buffer: bytes) -> bool:
        payload = {
            "alg": self.alg,
            "ciphertext_b64": b64_encode(buffer),
        }
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            log.error("oracle request failed", url=self.url, error=str(e))
            raise OracleError(f"Request to {self.url} failed: {e}") from e
        finally:
            if self.delay:
                time.sleep(self.delay)  # Stay under the target's rate limit.

        if response.status_code == 200:
            return True
        if 400 <= response.status_code < 500:
            return False
        log.error("unexpected oracle response", url=self.url, status=response.status_code)
        raise OracleError(f"Unexpected response from {self.url}: {response.status_code}")

    def character_set(self) -> Optional[HintLike]:
        return self._character_set
