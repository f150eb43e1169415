from fastapi import APIRouter, HTTPException
import structlog

from poracle.utils import b64_encode, b64_decode

from . import crypto, models

log = structlog.get_logger()

router = APIRouter()

DEMO1 = "Hello, world!"

DEMO2 = (
    "aaaaaaaaaaaaaaaa"
    "bbbbbbbbbbbbbbbb"
    "cccccccccccccccc"
    "dddddddddddddddd"
    "eeeeeeeeeeeeeeee"
)

DEMO3 = """It is a truth universally acknowledged, that a single man in possession
of a good fortune, must be in want of a wife.
However little known the feelings or views of such a man may be on his first
entering a neighbourhood, this truth is so well fixed in the minds of the
surrounding families, that he is considered as the rightful property of some
one or other of their daughters."""


def encrypt(plaintext: bytes, cipher: crypto.CipherSuite = crypto.CipherSuite.AES_128_CBC) -> bytes:
    key = crypto.get_key(cipher)
    iv = crypto.get_iv(cipher, random=False)

    ciphertext = crypto.encrypt(cipher, key, iv, plaintext)
    log.info(
        "encrypted",
        cipher=str(cipher),
        plaintext_hex=plaintext.hex(" "),
        iv_hex=iv.hex(),
        ciphertext_hex=ciphertext.hex(" "),
        ciphertext_len=len(ciphertext),
    )
    return ciphertext


def build_encrypted_response(plaintext: bytes,
                             cipher: crypto.CipherSuite = crypto.CipherSuite.AES_128_CBC) -> models.EncryptResponse:
    """ Build a response with the encrypted ciphertext of the given plaintext. """
    ct = encrypt(plaintext, cipher)
    return models.EncryptResponse(
        alg=cipher,
        ciphertext_b64=b64_encode(ct),
        ciphertext_hex=ct.hex(),
    )


@router.get("/demo1", response_model=models.EncryptResponse)
def demo1():
    """ Single block. """
    return build_encrypted_response(DEMO1.encode("utf-8"))


@router.get("/demo2", response_model=models.EncryptResponse)
def demo2():
    """ Five blocks of one repeated character each, plus a full padding block. """
    return build_encrypted_response(DEMO2.encode("utf-8"))


@router.get("/demo3", response_model=models.EncryptResponse)
def demo3():
    """ Longer English text. """
    return build_encrypted_response(DEMO3.encode("utf-8"))


@router.post("/encrypt", response_model=models.EncryptResponse)
def encrypt_api(req: models.EncryptRequest):
    """ Encrypt the given plaintext and return the IV-prefixed ciphertext. """
    try:
        plaintext = b64_decode(req.plaintext_b64)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Encryption error: {e}")
    return build_encrypted_response(plaintext, req.alg)


@router.post("/validate", response_model=models.ValidateResponse)
def validate(req: models.ValidateRequest):
    """ Decrypt the given ciphertext and report only whether it worked.
    This is the endpoint that is vulnerable to the padding oracle attack.
    """
    key = crypto.get_key(req.alg)
    try:
        ciphertext = b64_decode(req.ciphertext_b64)
        crypto.decrypt(req.alg, key, ciphertext)
    except ValueError as e:
        log.debug("rejected ciphertext", cipher=str(req.alg), error=str(e))
        raise HTTPException(status_code=400, detail=f"{e}")

    log.debug("accepted ciphertext", cipher=str(req.alg), ciphertext_len=len(ciphertext))
    return models.ValidateResponse(valid=True)
