from fastapi.testclient import TestClient

from poracle.counter import GuessCounter
from poracle.remote_oracle import RemoteOracle
from poracle.solver import decrypt
from poracle.utils import b64_decode, b64_encode

from demo_api.api import DEMO1
from demo_api.main import app

client = TestClient(app)


class InProcessSession:
    """Lets RemoteOracle talk to the app in process."""

    def __init__(self, client):
        self.client = client

    def post(self, url, json, timeout):
        return self.client.post(url, json=json)


def validate(ciphertext: bytes, alg: str = "AES-128-CBC"):
    return client.post("/api/validate", json={"alg": alg, "ciphertext_b64": b64_encode(ciphertext)})


class TestDemoApi:
    """Test suite for the demo padding oracle service"""

    def test_demo_ciphertext_is_valid(self):
        response = client.get("/api/demo1")
        assert response.status_code == 200
        body = response.json()
        assert body["alg"] == "AES-128-CBC"
        ciphertext = b64_decode(body["ciphertext_b64"])
        assert ciphertext.hex() == body["ciphertext_hex"]
        assert len(ciphertext) == 32  # IV + one block

        response = validate(ciphertext)
        assert response.status_code == 200
        assert response.json() == {"valid": True}

    def test_bad_padding_is_rejected(self):
        ciphertext = bytearray(b64_decode(client.get("/api/demo1").json()["ciphertext_b64"]))
        ciphertext[15] ^= 0x0f  # last plaintext byte 0x03 -> 0x0c
        response = validate(bytes(ciphertext))
        assert response.status_code == 400

    def test_short_ciphertext_is_rejected(self):
        assert validate(bytes(16)).status_code == 400

    def test_encrypt_endpoint(self):
        response = client.post("/api/encrypt", json={"plaintext_b64": b64_encode(b"x" * 16),
                                                     "alg": "AES-256-CBC"})
        assert response.status_code == 200
        ciphertext = b64_decode(response.json()["ciphertext_b64"])
        assert len(ciphertext) == 48
        assert validate(ciphertext, "AES-256-CBC").status_code == 200

    def test_unknown_algorithm(self):
        response = client.post("/api/validate", json={"alg": "ROT13", "ciphertext_b64": ""})
        assert response.status_code == 422

    def test_attack_through_http(self):
        """The remote oracle recovers the demo plaintext from the service alone"""
        ciphertext = b64_decode(client.get("/api/demo1").json()["ciphertext_b64"])
        oracle = RemoteOracle("/api/validate", session=InProcessSession(client))
        plaintext = decrypt(oracle, ciphertext[16:], ciphertext[:16], counter=GuessCounter())
        assert plaintext == DEMO1.encode("utf-8")
