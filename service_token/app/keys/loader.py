"""
Private key loading from ordered candidate sources.
"""

import os
import re
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Tuple, Union

from shared.logging import get_logger
from ..errors import InvalidKeyFormatError, KeyNotFoundError
from ..models import KeyFamily, KeyFormat

logger = get_logger("token.keys.loader")

PEM_BLOCK_RE = re.compile(
    r"-----BEGIN ([A-Z0-9 ]+)-----(.*?)-----END \1-----",
    re.DOTALL,
)

RESOURCE_PREFIX = "resource:"
ENV_PREFIX = "env:"

_SEPARATED_FAMILIES = {
    KeyFormat.SEPARATED_EC: KeyFamily.EC,
    KeyFormat.SEPARATED_RSA: KeyFamily.RSA,
}


def _not_text(location: str, error: UnicodeDecodeError) -> InvalidKeyFormatError:
    return InvalidKeyFormatError(
        f"Key material at {location} is not PEM text (binary or non-UTF-8 content)",
        details={"location": location, "position": error.start}
    )


class KeySource(Protocol):
    """A place PEM text may be read from."""

    location: str

    def read(self) -> Optional[str]:
        """Return the PEM text, or None when the source does not exist."""
        ...


class FileKeySource:
    """PEM file on the local filesystem."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.location = str(path)

    def read(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise _not_text(self.location, e) from e
        except OSError as e:
            logger.warning("Key file unreadable", location=self.location, error=str(e))
            return None


class PackageResourceKeySource:
    """PEM file bundled as a resource inside an installed package."""

    def __init__(self, package: str, resource: str):
        self.package = package
        self.resource = resource
        self.location = f"{RESOURCE_PREFIX}{package}/{resource}"

    def read(self) -> Optional[str]:
        try:
            ref = resources.files(self.package).joinpath(self.resource)
            if not ref.is_file():
                return None
            return ref.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise _not_text(self.location, e) from e
        except (ModuleNotFoundError, FileNotFoundError):
            return None


class EnvironmentKeySource:
    """PEM text held in an environment variable."""

    def __init__(self, variable: str):
        self.variable = variable
        self.location = f"{ENV_PREFIX}{variable}"

    def read(self) -> Optional[str]:
        value = os.environ.get(self.variable)
        return value or None


def key_source_from_location(location: str) -> KeySource:
    """Build a key source from a configured location string.

    ``resource:<package>/<name>`` and ``env:<VAR>`` select the bundled
    resource and environment sources; anything else is a file path.
    """
    if location.startswith(RESOURCE_PREFIX):
        package, _, resource = location[len(RESOURCE_PREFIX):].partition("/")
        if not package or not resource:
            raise ValueError(f"Resource location must be resource:<package>/<name>: {location}")
        return PackageResourceKeySource(package, resource)
    if location.startswith(ENV_PREFIX):
        return EnvironmentKeySource(location[len(ENV_PREFIX):])
    return FileKeySource(location)


@dataclass(frozen=True)
class PrivateKeyMaterial:
    """Raw PEM text plus what could be learned from its envelope."""

    pem: str
    location: str
    label: str
    body: str
    format: Optional[KeyFormat]
    key_family: Optional[KeyFamily]


def find_pem_block(pem: str) -> Optional[Tuple[str, str]]:
    """Return ``(label, base64 body)`` of the private key envelope in ``pem``.

    OpenSSL may emit an ``EC PARAMETERS`` block ahead of the key, so the
    first block labelled ``... PRIVATE KEY`` wins over earlier blocks.
    """
    blocks = PEM_BLOCK_RE.findall(pem)
    if not blocks:
        return None
    for label, body in blocks:
        if label.endswith("PRIVATE KEY"):
            return label, body
    return blocks[0]


def parse_private_key_material(pem: str, location: str) -> PrivateKeyMaterial:
    block = find_pem_block(pem)
    if block is None:
        raise InvalidKeyFormatError(
            "Key material has no PEM envelope",
            details={"location": location}
        )
    label, body = block
    try:
        key_format: Optional[KeyFormat] = KeyFormat(label)
    except ValueError:
        key_format = None

    return PrivateKeyMaterial(
        pem=pem,
        location=location,
        label=label,
        body=body,
        format=key_format,
        key_family=_SEPARATED_FAMILIES.get(key_format),
    )


class KeyMaterialLoader:
    """Reads the first available private key from an ordered list of sources."""

    def load(self, sources: Iterable[Union[KeySource, str]]) -> PrivateKeyMaterial:
        attempted: List[str] = []
        for source in sources:
            if isinstance(source, str):
                source = key_source_from_location(source)
            attempted.append(source.location)

            pem = source.read()
            if pem is None:
                logger.debug("Key source missing", location=source.location)
                continue

            material = parse_private_key_material(pem, source.location)
            logger.info(
                "Private key loaded",
                location=source.location,
                label=material.label
            )
            return material

        logger.error("No private key found", attempted=attempted)
        raise KeyNotFoundError(attempted)
