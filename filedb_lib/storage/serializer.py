from typing import Any, Protocol
import base64
import json
import os

import yaml


class Serializer(Protocol):
    """Turn a decoded record payload into bytes for a record file and back.

    `extension` is the filename suffix the file backend uses for records
    written with this serializer. Implementations must be symmetric.
    """

    extension: str

    def dump(self, value: Any) -> bytes: ...

    def load(self, data: bytes) -> Any: ...


class JSONSerializer:
    """Default serializer. Produces `{"Value": "..."}` documents."""

    extension = ".json"

    def dump(self, value: Any) -> bytes:
        return json.dumps(value, ensure_ascii=False).encode("utf-8")

    def load(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))


class YAMLSerializer:
    """Serializer using YAML text, handy for hand-edited stores."""

    extension = ".yml"

    def dump(self, value: Any) -> bytes:
        return yaml.safe_dump(value, allow_unicode=True, sort_keys=False).encode("utf-8")

    def load(self, data: bytes) -> Any:
        return yaml.safe_load(data.decode("utf-8"))


class EncryptedSerializer:
    """Serializer that encrypts record payloads using Fernet.

    Provide either `key` (a Fernet key) or `password`. In password mode each
    record carries its own random salt and the PBKDF2 iteration count, so a
    record file can be decrypted with nothing but the password. The inner
    payload is produced by `base_serializer` (JSON unless given).
    """

    extension = ".enc"

    def __init__(
        self,
        *,
        key: bytes | None = None,
        password: str | None = None,
        iterations: int = 390000,
        base_serializer: Serializer | None = None,
    ) -> None:
        if key is None and password is None:
            raise ValueError("EncryptedSerializer requires either `key` or `password`")
        self._key = key
        self._password = password
        self._iterations = iterations
        self.base_serializer = base_serializer or JSONSerializer()

    def _derive_key(self, salt: bytes, iterations: int) -> bytes:
        from cryptography.hazmat.primitives import hashes
        from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

        assert self._password is not None
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=iterations,
        )
        return base64.urlsafe_b64encode(kdf.derive(self._password.encode("utf-8")))

    def dump(self, value: Any) -> bytes:
        from cryptography.fernet import Fernet

        inner = self.base_serializer.dump(value)
        if self._password is not None:
            salt = os.urandom(16)
            token = Fernet(self._derive_key(salt, self._iterations)).encrypt(inner)
            frame = {
                "v": 1,
                "mode": "password",
                "kdf": "pbkdf2",
                "iterations": self._iterations,
                "salt": base64.urlsafe_b64encode(salt).decode("ascii"),
                "ct": token.decode("ascii"),
            }
        else:
            assert self._key is not None
            token = Fernet(self._key).encrypt(inner)
            frame = {"v": 1, "mode": "key", "ct": token.decode("ascii")}
        return json.dumps(frame).encode("utf-8")

    def load(self, data: bytes) -> Any:
        """Parse the frame, derive the key if needed, decrypt and decode.

        Raises `ValueError` for frames this serializer cannot open and
        `cryptography.fernet.InvalidToken` for tampered or foreign records.
        """
        from cryptography.fernet import Fernet

        frame = json.loads(data.decode("utf-8"))
        if not isinstance(frame, dict):
            raise ValueError("unknown frame format")
        mode = frame.get("mode")
        if mode == "password":
            if self._password is None:
                raise ValueError("serializer was not configured with a password")
            salt = base64.urlsafe_b64decode(frame["salt"].encode("ascii"))
            key = self._derive_key(salt, int(frame.get("iterations", self._iterations)))
        elif mode == "key":
            if self._key is None:
                raise ValueError("serializer was not configured with a key")
            key = self._key
        else:
            raise ValueError("unknown frame format")
        inner = Fernet(key).decrypt(frame["ct"].encode("ascii"))
        return self.base_serializer.load(inner)


_SERIALIZERS = {
    "json": JSONSerializer,
    "yaml": YAMLSerializer,
    "encrypted": EncryptedSerializer,
}


def create_serializer(name: str = "json", **options: Any) -> Serializer:
    """Build a serializer by name (`json`, `yaml` or `encrypted`).

    `options` are passed to the serializer constructor; only the encrypted
    serializer accepts any (`key`, `password`, `iterations`).
    """
    try:
        cls = _SERIALIZERS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown serializer: {name!r}") from None
    if options and cls is not EncryptedSerializer:
        raise ValueError(f"Serializer {name!r} takes no options")
    if cls is EncryptedSerializer:
        key = options.get("key")
        if isinstance(key, str):
            options["key"] = key.encode("ascii")
    return cls(**options)
