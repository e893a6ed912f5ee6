"""Persistent JSON store backing hash and metadata lookups."""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from json import JSONDecodeError
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .errors import MetadataReadError

KV = "kv"
META = "meta"


class MetaStore:
    """One JSON document per (namespace, key) under ``root``.

    File names are digests of the key, so any target name (including file
    paths) is a valid key. The original key is kept inside the document.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)
        for namespace in (KV, META):
            (self.root / namespace).mkdir(parents=True, exist_ok=True)

    def _path(self, namespace: str, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self.root / namespace / f"{digest}.json"

    def _read(self, namespace: str, key: str) -> Optional[dict[str, Any]]:
        path = self._path(namespace, key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except FileNotFoundError:
            return None
        except (JSONDecodeError, UnicodeDecodeError) as exc:
            raise MetadataReadError(key, f"corrupt {namespace} entry ({exc})") from exc
        except OSError as exc:
            raise MetadataReadError(key, f"unreadable {namespace} entry ({exc})") from exc
        if not isinstance(doc, dict):
            raise MetadataReadError(key, f"{namespace} entry is not an object")
        return doc

    def _write(self, namespace: str, key: str, doc: dict[str, Any]) -> None:
        path = self._path(namespace, key)
        fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", suffix=".json", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(doc, f, ensure_ascii=False, sort_keys=True)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    # Value hashes

    def get_hash(self, key: str) -> Optional[str]:
        try:
            doc = self._read(KV, key)
        except MetadataReadError as exc:
            logger.warning(f"ignoring unreadable hash entry: {exc}")
            return None
        if doc is None:
            return None
        value = doc.get("hash")
        return value if isinstance(value, str) else None

    def set_hash(self, key: str, value: str) -> None:
        self._write(KV, key, {"key": key, "hash": value})

    def exists(self, key: str) -> bool:
        return self._path(KV, key).is_file()

    # Metadata

    def get_meta(self, key: str) -> Optional[dict[str, Any]]:
        doc = self._read(META, key)
        if doc is None:
            return None
        meta = doc.get("meta")
        if not isinstance(meta, dict):
            raise MetadataReadError(key, "meta entry has no 'meta' object")
        return meta

    def set_meta(self, key: str, meta: dict[str, Any]) -> None:
        self._write(META, key, {"key": key, "meta": meta})

    # Housekeeping

    def delete(self, key: str) -> None:
        for namespace in (KV, META):
            try:
                self._path(namespace, key).unlink()
            except FileNotFoundError:
                pass

    def keys(self, namespace: str = KV) -> list[str]:
        out: list[str] = []
        for path in sorted((self.root / namespace).glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    doc = json.load(f)
            except (OSError, JSONDecodeError, UnicodeDecodeError):
                continue
            key = doc.get("key") if isinstance(doc, dict) else None
            if isinstance(key, str):
                out.append(key)
        return sorted(out)
