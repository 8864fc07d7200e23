"""Self-signed development certificate for local HTTPS tooling."""

from __future__ import annotations

import ipaddress
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

CERT_FILENAME = "toolcall-dev.pem"
KEY_FILENAME = "toolcall-dev.key"
VALIDITY = timedelta(days=365)


@dataclass(frozen=True)
class CertificatePaths:
    certificate: Path
    key: Path


class CertificateGenerator:
    def __init__(self, certs_dir: Path, *, key_size: int = 2048) -> None:
        self._certs_dir = certs_dir
        self._key_size = key_size

    @property
    def paths(self) -> CertificatePaths:
        return CertificatePaths(self._certs_dir / CERT_FILENAME, self._certs_dir / KEY_FILENAME)

    def generate(self) -> CertificatePaths:
        paths = self.paths
        if paths.certificate.exists() and paths.key.exists():
            return paths
        key = rsa.generate_private_key(public_exponent=65537, key_size=self._key_size)
        subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "localhost")])
        now = datetime.now(timezone.utc)
        certificate = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(subject)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(minutes=5))
            .not_valid_after(now + VALIDITY)
            .add_extension(
                x509.SubjectAlternativeName(
                    [x509.DNSName("localhost"), x509.IPAddress(ipaddress.ip_address("127.0.0.1"))]
                ),
                critical=False,
            )
            .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            .sign(key, hashes.SHA256())
        )
        self._certs_dir.mkdir(parents=True, exist_ok=True)
        paths.key.write_bytes(
            key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )
        os.chmod(paths.key, 0o600)
        paths.certificate.write_bytes(certificate.public_bytes(serialization.Encoding.PEM))
        return paths
