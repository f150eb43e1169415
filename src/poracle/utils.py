import base64
import binascii
import importlib.util
import inspect
import types
from typing import Literal, Optional, Union

from poracle.oracle import FunctionOracle
from poracle.ordering import HintLike

PLUGIN_FUNC_NAME = "submit_guess"
PLUGIN_CHARSET_NAME = "CHARACTER_SET"

CiphertextFormat = Literal["b64", "b64_urlsafe", "hex", "raw"]
CIPHERTEXT_FORMATS = ("b64", "b64_urlsafe", "hex", "raw")


class PluginLoadError(RuntimeError):
    pass


class PluginSignatureError(TypeError):
    pass


def load_module_from_file(module_file_path: str) -> types.ModuleType:
    """Load a Python module file."""
    spec = importlib.util.spec_from_file_location("poracle_plugin", module_file_path)
    if spec is None or spec.loader is None:
        raise PluginLoadError(f"Could not load spec for: {module_file_path}")
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)  # executes user code
    return mod


def load_oracle_plugin(module_file_path: str, block_size: int = 16,
                       character_set: Optional[HintLike] = None) -> FunctionOracle:
    """Wrap the plugin's `submit_guess(prev_block, target_block)` in an oracle.

    The plugin may also define CHARACTER_SET (str or bytes) as a guess hint;
    an explicit `character_set` wins over it.
    """
    mod = load_module_from_file(module_file_path)
    fn = getattr(mod, PLUGIN_FUNC_NAME, None)
    if fn is None:
        raise PluginLoadError(
            f"Plugin must define `{PLUGIN_FUNC_NAME}(prev_block: bytes, target_block: bytes) -> bool`"
        )

    sig = inspect.signature(fn)
    params = list(sig.parameters.values())
    if len(params) != 2 or any(
        p.kind not in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        for p in params
    ):
        raise PluginSignatureError(
            "submit_guess must accept exactly two positional args: (prev_block: bytes, target_block: bytes)"
        )

    return FunctionOracle(
        fn,
        block_size=block_size,
        character_set=character_set or getattr(mod, PLUGIN_CHARSET_NAME, None),
        name=f"plugin {module_file_path}",
    )


def parse_bytes(data: Union[str, bytes], format: CiphertextFormat) -> bytes:
    """Decode text or file contents in one of the supported encodings."""
    if format == "raw":
        return _as_bytes(data)
    text = _as_bytes(data).decode("ascii").strip()
    if format == "b64":
        return b64_decode(text)
    elif format == "b64_urlsafe":
        return b64_decode(text, urlsafe=True)
    elif format == "hex":
        return bytes.fromhex(text)
    else:
        raise ValueError(f"Invalid ciphertext format: {format}")


def load_ciphertext(file_path: str, format: CiphertextFormat) -> bytes:
    """Load the ciphertext from a file."""
    with open(file_path, "rb") as f:
        data = f.read()
    return parse_bytes(data, format)


def _as_bytes(
    data: Union[str, bytes, bytearray, memoryview],
    *,
    encoding: str = "utf-8",
) -> bytes:
    """Normalize values to type bytes."""
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode(encoding)
    raise TypeError(f"Expected str or bytes-like, got {type(data).__name__}")


def b64_encode(
    data: Union[str, bytes, bytearray, memoryview],
    *,
    urlsafe: bool = False,
    text_encoding: str = "utf-8",
) -> str:
    """Accepts str/bytes/etc and return a base64 string (standard or URL-safe)."""
    raw = _as_bytes(data, encoding=text_encoding)
    fn = base64.urlsafe_b64encode if urlsafe else base64.b64encode
    return fn(raw).decode("ascii")


def b64_decode(b64_text: Union[str, bytes], *, urlsafe: bool = False) -> bytes:
    """Decodes either standard or URL-safe b64. Tolerates missing '=' padding."""
    text = _as_bytes(b64_text).strip()
    missing = len(text) % 4
    if missing:
        text += b"=" * (4 - missing)

    if urlsafe:
        return base64.urlsafe_b64decode(text)
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error:
        return base64.urlsafe_b64decode(text)  # URL-safe fallback
