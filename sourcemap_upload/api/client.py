"""HTTP client for the Replay sourcemap upload API."""

import json
import logging
import random
import time
from typing import Callable, Dict, List, Optional
from urllib.parse import quote

import httpx

from sourcemap_upload.network import (
    UPLOAD_ENDPOINT,
    UPLOAD_HOST,
    UPLOAD_ROUNDS,
    Resolver,
    address_url,
    resolve_addresses,
    retry_sleep_time,
    shuffled,
)
from sourcemap_upload.scan.models import UploadRecord

log = logging.getLogger(__name__)

# Printable ASCII goes into headers as-is; anything else is UTF-8 percent-encoded.
_HEADER_SAFE = "".join(chr(c) for c in range(0x20, 0x7F))


def header_value(value: str) -> str:
    """Header-safe form of value: non-ASCII and control characters are percent-encoded."""
    return quote(value, safe=_HEADER_SAFE)


class UploadError(Exception):
    """A sourcemap could not be delivered to the upload API."""


class SourcemapUploadAPI:
    """
    Client for the sourcemap upload endpoint.

    Every attempt connects to one literal resolved address but presents the
    logical hostname for TLS (SNI and certificate check) and in the Host header.
    Failed attempts are retried across all addresses for several rounds with
    jittered quadratic backoff, then once more against a fresh lookup.
    """

    def __init__(
        self,
        hostname: str = UPLOAD_HOST,
        endpoint: str = UPLOAD_ENDPOINT,
        resolver: Optional[Resolver] = None,
        rng: Optional[random.Random] = None,
        sleep: Optional[Callable[[float], None]] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._hostname = hostname
        self._endpoint = endpoint
        self._resolver = resolver or resolve_addresses
        self._rng = rng or random.Random()
        self._sleep = sleep or time.sleep
        self._transport = transport
        self._timeout = timeout
        log.debug("Upload client hostname=%s endpoint=%s", hostname, endpoint)

    def _headers(self, group_name: str, api_key: str, record: UploadRecord) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {header_value(api_key)}",
            "X-Replay-SourceMap-Group": header_value(group_name),
            "X-Replay-SourceMap-Filename": header_value(record.relative_path),
            "X-Replay-SourceMap-ContentHash": f"sha256:{record.generated_file_hash}",
            "Host": self._hostname,
        }

    def _resolve(self) -> List[str]:
        try:
            return self._resolver(self._hostname)
        except OSError as e:
            log.debug("DNS lookup for %s failed: %s", self._hostname, e)
            raise UploadError(f"Failed to resolve {self._hostname}: {e}") from e

    def put_sourcemap(
        self,
        group_name: str,
        api_key: str,
        record: UploadRecord,
        address: str,
    ) -> Dict[str, object]:
        """One PUT to one address. Returns the JSON response object; raises UploadError."""
        log.debug("Attempting upload of %s with IP %s", record.abs_path, address)
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport, trust_env=False) as client:
                r = client.put(
                    address_url(address, self._endpoint),
                    content=record.content,
                    headers=self._headers(group_name, api_key, record),
                    extensions={"sni_hostname": self._hostname},
                )
                text = r.text
        except Exception as e:
            # Any failure building or sending the request fails the attempt.
            log.debug("Failure uploading sourcemap %s, got %r", record.abs_path, e)
            raise UploadError(f"Unexpected error uploading sourcemap: {e}") from e

        try:
            obj = json.loads(text)
        except ValueError as e:
            log.debug(
                "Failure parsing sourcemap upload response JSON for %s, got body %s",
                record.abs_path,
                text[:200] + ("..." if len(text) > 200 else ""),
            )
            raise UploadError("Unexpected error processing upload response") from e
        if not isinstance(obj, dict):
            log.debug("Upload response for %s was not a JSON object", record.abs_path)
            raise UploadError("Unexpected error processing upload response")

        if r.status_code != 200:
            log.debug("Failure uploading sourcemap for %s, got %s %s", record.abs_path, r.status_code, obj)
            error = obj.get("error")
            raise UploadError(error if isinstance(error, str) else "Unknown upload error")
        return obj

    def upload(self, group_name: str, api_key: str, record: UploadRecord) -> Dict[str, object]:
        """
        Deliver one sourcemap. Tries every address, re-resolved and reshuffled
        each round, sleeping between failures; after UPLOAD_ROUNDS rounds makes
        one last unshuffled attempt whose outcome is final.
        """
        for attempt in range(UPLOAD_ROUNDS):
            for address in shuffled(self._resolve(), self._rng):
                try:
                    return self.put_sourcemap(group_name, api_key, record, address)
                except UploadError as e:
                    log.debug(
                        "Sourcemap upload attempt %d failed for %s, got %s",
                        attempt,
                        record.abs_path,
                        e,
                    )
                    self._sleep(retry_sleep_time(attempt, self._rng))

        addresses = self._resolve()
        if not addresses:
            raise UploadError(f"Failed to resolve {self._hostname}: no addresses")
        log.debug("Final upload attempt for %s", record.abs_path)
        return self.put_sourcemap(group_name, api_key, record, addresses[0])
