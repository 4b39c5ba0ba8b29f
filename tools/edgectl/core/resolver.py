"""Resolve certificate selectors (--id / --name) to exactly one certificate."""

from __future__ import annotations

from tools.edgectl.core.certificates import Certificate, CertificateClient
from tools.edgectl.core.errors import AmbiguousNameError, NotFoundError, SelectorError


def resolve_by_name(client: CertificateClient, name: str) -> Certificate:
    """Return the single certificate whose name is exactly ``name``.

    The server-side name filter may return a superset, so matches are
    re-checked here. Zero and multiple matches both fail; the first match is
    never picked silently.
    """

    matches = [cert for cert in client.list(name=name) if cert.name == name]
    if not matches:
        raise NotFoundError(f'certificate not found with name "{name}"')
    if len(matches) > 1:
        raise AmbiguousNameError(f'multiple certificates found with name "{name}"')
    return matches[0]


def resolve_certificate(
    client: CertificateClient,
    *,
    cert_id: str | None,
    name: str | None,
) -> Certificate:
    """Shared selector policy for the get and delete commands."""

    if not cert_id and not name:
        raise SelectorError("Must provide --id or --name.")
    if cert_id and name:
        raise SelectorError("Can't provide both --id and --name.")
    if name:
        return resolve_by_name(client, name)
    return client.get(cert_id)
