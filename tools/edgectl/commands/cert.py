"""CLI parser and handlers for `edgectl cert`."""

from __future__ import annotations

import argparse
from datetime import datetime

from tools.edgectl.core import logging, prompt
from tools.edgectl.core.certificates import Certificate, CertificateClient, read_material
from tools.edgectl.core.errors import PreconditionError
from tools.edgectl.core.resolver import resolve_certificate
from tools.edgectl.core.runner import CommandRunner
from tools.edgectl.core.settings import EdgectlSettings


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "cert",
        help="Manage client mTLS certificates and CA certificate chains",
    )
    cert_subparsers = parser.add_subparsers(dest="cert_command", required=True)

    upload = cert_subparsers.add_parser("upload", help="Upload a new cert")
    upload_subparsers = upload.add_subparsers(dest="upload_kind", required=True)

    mtls = upload_subparsers.add_parser(
        "mtls-certificate",
        help="Upload an mTLS certificate and its private key",
    )
    mtls.add_argument("--cert", required=True, help="Path to the certificate chain (PEM)")
    mtls.add_argument("--key", required=True, help="Path to the private key (PEM)")
    mtls.add_argument("--name", help="Name for the new certificate")
    mtls.set_defaults(func=run_upload_mtls)

    ca = upload_subparsers.add_parser(
        "certificate-authority",
        help="Upload a CA certificate chain",
    )
    ca.add_argument("--ca-cert", required=True, help="Path to the CA chain (PEM)")
    ca.add_argument("--name", help="Name for the new certificate")
    ca.set_defaults(func=run_upload_ca)

    list_parser = cert_subparsers.add_parser("list", help="List uploaded mTLS certificates")
    list_parser.set_defaults(func=run_list)

    get = cert_subparsers.add_parser("get", help="Show one mTLS certificate")
    _add_selector_arguments(get)
    get.set_defaults(func=run_get)

    delete = cert_subparsers.add_parser("delete", help="Delete an mTLS certificate")
    _add_selector_arguments(delete)
    delete.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")
    delete.set_defaults(func=run_delete)


def _add_selector_arguments(parser: argparse.ArgumentParser) -> None:
    # Validated by resolve_certificate so both commands report the same errors.
    parser.add_argument("--id", dest="cert_id", help="Certificate ID")
    parser.add_argument("--name", help="Certificate name")


def open_client(args: argparse.Namespace, settings: EdgectlSettings) -> CertificateClient:
    account_id = getattr(args, "account_id", None) or settings.account_id
    if not account_id:
        raise PreconditionError("Failed to read account id.")
    return CertificateClient.from_settings(settings, account_id)


def run_upload_mtls(
    args: argparse.Namespace, runner: CommandRunner, settings: EdgectlSettings
) -> int:
    label = _upload_label("mTLS Certificate", args.name)
    with open_client(args, settings) as client:
        logging.step(f"Uploading {label}...")
        # Certificate first, then key; both are read before any request.
        certificates = read_material(args.cert)
        private_key = read_material(args.key)
        if runner.dry_run:
            runner.emit(f"[dry-run] upload {label}")
            return 0
        cert = client.upload(certificates, private_key, name=args.name)
    _print_upload_result(label, cert)
    return 0


def run_upload_ca(
    args: argparse.Namespace, runner: CommandRunner, settings: EdgectlSettings
) -> int:
    label = _upload_label("CA Certificate", args.name)
    with open_client(args, settings) as client:
        logging.step(f"Uploading {label}...")
        certificates = read_material(args.ca_cert)
        if runner.dry_run:
            runner.emit(f"[dry-run] upload {label}")
            return 0
        cert = client.upload(certificates, None, name=args.name, ca=True)
    _print_upload_result(label, cert)
    return 0


def run_list(args: argparse.Namespace, runner: CommandRunner, settings: EdgectlSettings) -> int:
    del runner
    with open_client(args, settings) as client:
        certs = client.list()
    if not certs:
        logging.info("No certificates found.")
        return 0
    for cert in certs:
        logging.plain(format_certificate(cert) + "\n")
    return 0


def run_get(args: argparse.Namespace, runner: CommandRunner, settings: EdgectlSettings) -> int:
    del runner
    with open_client(args, settings) as client:
        cert = resolve_certificate(client, cert_id=args.cert_id, name=args.name)
    logging.plain(format_certificate(cert))
    return 0


def run_delete(args: argparse.Namespace, runner: CommandRunner, settings: EdgectlSettings) -> int:
    with open_client(args, settings) as client:
        cert = resolve_certificate(client, cert_id=args.cert_id, name=args.name)

        if not args.yes:
            question = f"Are you sure you want to delete certificate {cert.label}?"
            if not prompt.confirm(question):
                logging.plain("Not deleting")
                return 0

        if runner.dry_run:
            runner.emit(f"[dry-run] delete certificate {cert.label}")
            return 0
        client.delete(cert.id)
    logging.success(f"Deleted certificate {cert.label} successfully")
    return 0


def format_certificate(cert: Certificate) -> str:
    lines = [f"ID: {cert.id}"]
    if cert.name:
        lines.append(f"Name: {cert.name}")
    lines.append(f"Issuer: {cert.issuer or ''}")
    lines.append(f"Created on: {_format_date(cert.uploaded_on)}")
    lines.append(f"Expires on: {_format_date(cert.expires_on)}")
    if cert.ca:
        lines.append("CA: true")
    return "\n".join(lines)


def _upload_label(kind: str, name: str | None) -> str:
    return f"{kind} {name}" if name else kind


def _print_upload_result(label: str, cert: Certificate) -> None:
    logging.success(f"Success! Uploaded {label}")
    logging.plain(f"ID: {cert.id}")
    logging.plain(f"Issuer: {cert.issuer or ''}")
    logging.plain(f"Expires on {_format_date(cert.expires_on)}")


def _format_date(value: datetime | None) -> str:
    return value.date().isoformat() if value else ""
