"""
Where: tools/edgectl/core/certificates.py
What: Typed client for the mTLS certificate registry.
Why: Keep request/response mapping apart from name resolution and CLI output.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from tools.edgectl.core.errors import FileReadError, NotFoundError, TransportError
from tools.edgectl.core.http_client import HttpClientFactory
from tools.edgectl.core.settings import EdgectlSettings

logger = logging.getLogger(__name__)


class Certificate(BaseModel):
    """A certificate resource as returned by the registry."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Server-assigned identifier")
    name: Optional[str] = Field(None, description="User-assigned name, not unique")
    certificates: str = Field(default="", description="PEM material (leaf+chain or CA chain)")
    issuer: Optional[str] = Field(None, description="Issuer derived by the server")
    uploaded_on: Optional[datetime] = Field(None, description="Creation timestamp")
    expires_on: Optional[datetime] = Field(None, description="Expiry timestamp")
    ca: bool = Field(default=False, description="True for CA chain uploads")

    @property
    def label(self) -> str:
        return f"{self.id} ({self.name})" if self.name else self.id


class CertificateUpload(BaseModel):
    """Request body for the upload endpoint."""

    certificates: str
    private_key: Optional[str] = None
    name: Optional[str] = None
    ca: bool = False


def read_material(path: str | Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileReadError(path) from exc


class CertificateClient:
    """Registry operations scoped to one account."""

    def __init__(self, http: httpx.Client, account_id: str):
        self._http = http
        self.account_id = account_id

    @classmethod
    def from_settings(cls, settings: EdgectlSettings, account_id: str) -> "CertificateClient":
        return cls(HttpClientFactory(settings).create_api_client(), account_id)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "CertificateClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def _collection(self) -> str:
        return f"/accounts/{self.account_id}/mtls_certificates"

    def upload(
        self,
        certificates: str,
        private_key: str | None = None,
        name: str | None = None,
        ca: bool = False,
    ) -> Certificate:
        body = CertificateUpload(
            certificates=certificates, private_key=private_key, name=name, ca=ca
        )
        result = self._request("POST", self._collection, json=body.model_dump(exclude_none=True))
        return Certificate.model_validate(result)

    def upload_mtls_certificate_from_fs(
        self, cert_path: str | Path, key_path: str | Path, name: str | None = None
    ) -> Certificate:
        # Certificate first, then key; nothing is sent until both are read.
        certificates = read_material(cert_path)
        private_key = read_material(key_path)
        return self.upload(certificates, private_key, name=name)

    def upload_ca_certificate_from_fs(
        self, ca_cert_path: str | Path, name: str | None = None
    ) -> Certificate:
        certificates = read_material(ca_cert_path)
        return self.upload(certificates, None, name=name, ca=True)

    def list(self, name: str | None = None) -> list[Certificate]:
        params = {"name": name} if name else None
        result = self._request("GET", self._collection, params=params)
        return [Certificate.model_validate(item) for item in result or []]

    def get(self, cert_id: str) -> Certificate:
        try:
            result = self._request("GET", f"{self._collection}/{cert_id}")
        except TransportError as exc:
            if exc.status_code == 404:
                raise NotFoundError(f'certificate not found with id "{cert_id}"') from exc
            raise
        if result is None:
            raise NotFoundError(f'certificate not found with id "{cert_id}"')
        return Certificate.model_validate(result)

    def delete(self, cert_id: str) -> None:
        self._request("DELETE", f"{self._collection}/{cert_id}")

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        logger.debug("%s %s", method, path)
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise TransportError(0, str(exc)) from exc

        envelope = _decode_envelope(response)
        if not response.is_success:
            raise TransportError(response.status_code, _error_detail(envelope, response))
        if envelope.get("success") is False:
            raise TransportError(response.status_code, _error_detail(envelope, response))
        return envelope.get("result")


def _decode_envelope(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _error_detail(envelope: dict[str, Any], response: httpx.Response) -> str:
    messages = []
    for err in envelope.get("errors") or []:
        if isinstance(err, dict):
            code = err.get("code")
            text = err.get("message", "")
            messages.append(f"{text} [code: {code}]" if code is not None else str(text))
        else:
            messages.append(str(err))
    if messages:
        return "; ".join(messages)
    return response.text.strip()
