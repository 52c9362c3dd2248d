"""Key-value persistence for per-user finance data.

Every value is a JSON document stored under a string key. The SQL backend is
the default; setting ``S3_BUCKET`` switches to an S3 bucket instead.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

from database import KeyValueEntry, SessionLocal, init_db

logger = logging.getLogger(__name__)

# Environment variables
S3_BUCKET = os.environ.get("S3_BUCKET")
S3_PREFIX = os.environ.get("S3_PREFIX", "paisapal")
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")


class KeyValueStore:
    """Minimal interface shared by all backends."""

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Process-local store; values are kept as JSON text like the other backends."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key, default=None):
        if key not in self._data:
            return default
        return json.loads(self._data[key])

    def set(self, key, value):
        self._data[key] = json.dumps(value)

    def delete(self, key):
        self._data.pop(key, None)


class SqlStore(KeyValueStore):
    """Stores each key as a row of the ``kv_entries`` table."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or SessionLocal

    def get(self, key, default=None):
        with self._session_factory() as db:
            entry = db.get(KeyValueEntry, key)
            if entry is None:
                return default
            return json.loads(entry.value)

    def set(self, key, value):
        payload = json.dumps(value)
        with self._session_factory() as db:
            entry = db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=payload))
            else:
                entry.value = payload
            db.commit()

    def delete(self, key):
        with self._session_factory() as db:
            entry = db.get(KeyValueEntry, key)
            if entry is not None:
                db.delete(entry)
                db.commit()


def get_s3_client():
    return boto3.client("s3", region_name=AWS_REGION)


class S3Store(KeyValueStore):
    """Stores each key as ``<prefix>/<key>.json`` in a bucket."""

    def __init__(self, bucket: str, prefix: str = S3_PREFIX, client=None):
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self._client = client or get_s3_client()

    def _object_key(self, key: str) -> str:
        return f"{self.prefix}/{key}.json" if self.prefix else f"{key}.json"

    def get(self, key, default=None):
        try:
            obj = self._client.get_object(Bucket=self.bucket, Key=self._object_key(key))
        except self._client.exceptions.NoSuchKey:
            return default
        except ClientError as e:
            logger.error("S3 download failed for %s: %s", key, e)
            raise
        return json.loads(obj["Body"].read())

    def set(self, key, value):
        body = json.dumps(value).encode("utf-8")
        try:
            self._client.put_object(Bucket=self.bucket, Key=self._object_key(key), Body=body)
        except ClientError as e:
            logger.error("S3 upload failed for %s: %s", key, e)
            raise

    def delete(self, key):
        self._client.delete_object(Bucket=self.bucket, Key=self._object_key(key))


def get_store() -> KeyValueStore:
    """
    Pick the configured backend: S3 when a bucket is set, otherwise the
    SQL database from ``DATABASE_URL``.
    """
    if S3_BUCKET:
        logger.info("Using S3 storage in bucket %s", S3_BUCKET)
        return S3Store(S3_BUCKET)
    init_db()
    return SqlStore()
