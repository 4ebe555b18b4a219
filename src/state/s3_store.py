from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional

import boto3
from botocore.exceptions import ClientError
from cryptography.fernet import Fernet, InvalidToken


logger = logging.getLogger(__name__)

MAX_CAS_ATTEMPTS = 3

# S3 answers a failed If-Match / If-None-Match with 412, and with 409 when a
# concurrent conditional write to the same key is still in flight.
_CONFLICT_CODES = ("PreconditionFailed", "412", "ConditionalRequestConflict", "409")


class OptimisticLockError(Exception):
    """The stored object changed between our read and our conditional write."""


@dataclass
class Snapshot:
    """Decrypted contents of the state object plus the ETag they were read at."""

    data: Dict[str, Any] = field(default_factory=dict)
    etag: Optional[str] = None


class S3KeyValueStore:
    """
    `KeyValueStore` kept as one Fernet-encrypted JSON object in S3.

    - `load()` returns a `Snapshot`; a missing object is an empty snapshot
      with no ETag.
    - `save(data, expected=snapshot)` writes conditionally: `If-Match` on the
      snapshot's ETag, or `If-None-Match: *` when the object did not exist yet,
      so two writers can never silently overwrite each other. A lost race raises
      `OptimisticLockError`.
    - `get`/`set`/`clear` run `load -> mutate -> save` in a worker thread and
      retry a few times when they lose a race.
    """

    def __init__(
        self,
        *,
        bucket: str,
        key: str,
        fernet_key: str | bytes,
        s3: Optional[object] = None,
        region_name: Optional[str] = None,
    ) -> None:
        if not bucket or not key:
            raise ValueError("bucket and key are required")
        self._bucket = bucket
        self._key = key
        self._fernet = Fernet(fernet_key.encode("utf-8") if isinstance(fernet_key, str) else fernet_key)
        self._s3 = s3 or boto3.client("s3", region_name=region_name)

    @property
    def location(self) -> str:
        return f"s3://{self._bucket}/{self._key}"

    # -------- Blocking operations --------
    def load(self) -> Snapshot:
        """Fetch and decrypt the state object.

        Raises ValueError when the object cannot be decrypted or is not a JSON
        object; other S3 failures propagate as ClientError.
        """
        try:
            resp = self._s3.get_object(Bucket=self._bucket, Key=self._key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                return Snapshot()
            raise

        try:
            plaintext = self._fernet.decrypt(resp["Body"].read())
        except InvalidToken as ex:
            raise ValueError(f"Cannot decrypt {self.location}: wrong Fernet key or corrupt object") from ex
        try:
            data = json.loads(plaintext.decode("utf-8"))
        except ValueError as ex:
            raise ValueError(f"{self.location} does not contain JSON") from ex
        if not isinstance(data, dict):
            raise ValueError(f"{self.location} does not contain a JSON object")
        return Snapshot(data=data, etag=resp.get("ETag"))

    def save(self, data: Dict[str, Any], *, expected: Snapshot) -> str:
        """Encrypt and conditionally write `data`; returns the new ETag."""
        body = self._fernet.encrypt(json.dumps(data, separators=(",", ":"), sort_keys=True).encode("utf-8"))
        condition = {"IfMatch": expected.etag} if expected.etag else {"IfNoneMatch": "*"}
        try:
            resp = self._s3.put_object(
                Bucket=self._bucket,
                Key=self._key,
                Body=body,
                ContentType="application/octet-stream",
                **condition,
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _CONFLICT_CODES:
                raise OptimisticLockError(f"{self.location} changed concurrently") from e
            raise
        return str(resp.get("ETag"))

    def update(self, mutate: Callable[[Dict[str, Any]], None]) -> str:
        """Apply `mutate` to the stored map, retrying on lost races."""
        attempt = 1
        while True:
            snapshot = self.load()
            data = dict(snapshot.data)
            mutate(data)
            try:
                return self.save(data, expected=snapshot)
            except OptimisticLockError:
                if attempt >= MAX_CAS_ATTEMPTS:
                    raise
                logger.info("%s changed concurrently; retrying (attempt %d)", self.location, attempt)
                attempt += 1

    # -------- KeyValueStore --------
    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        snapshot = await asyncio.to_thread(self.load)
        return {k: snapshot.data[k] for k in keys if k in snapshot.data}

    async def set(self, items: Dict[str, Any]) -> None:
        await asyncio.to_thread(self.update, lambda data: data.update(items))

    async def clear(self, keys: Optional[Iterable[str]] = None) -> None:
        names = None if keys is None else list(keys)

        def _remove(data: Dict[str, Any]) -> None:
            if names is None:
                data.clear()
                return
            for k in names:
                data.pop(k, None)

        await asyncio.to_thread(self.update, _remove)


__all__ = ["OptimisticLockError", "S3KeyValueStore", "Snapshot"]
