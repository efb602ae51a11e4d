"""Response Classifiers - Failure-tolerant parsing of S3 REST responses

Bodies come from arbitrary third-party servers, so every parser here treats
its input as hostile: entity expansion, DTD loading and network access are
disabled, and any parse problem degrades to "not recognized".
"""

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple

from lxml import etree

from ..bucket_core.constants import (
    LIST_BUCKET_ROOT, ACL_ROOT, ALL_USERS_URI, READ_PERMISSIONS, WRITE_PERMISSIONS,
    SERVER_HEADER, REGION_HEADER, DEFAULT_VENDOR_SIGNATURES
)

logger = logging.getLogger(__name__)


@dataclass
class ListBucketResult:
    """Classification of a root listing response"""
    is_s3: bool = False
    bucket_name: Optional[str] = None
    owner: Optional[str] = None

    @property
    def public(self) -> bool:
        return self.is_s3


@dataclass
class AclResult:
    """Classification of an ``?acl`` response"""
    is_s3: bool = False
    public_read: bool = False
    public_write: bool = False
    owner: Optional[str] = None
    grants: List[Tuple[Optional[str], Optional[str]]] = field(default_factory=list)  # (uri, permission)


def _safe_parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        dtd_validation=False,
        huge_tree=False,
        remove_comments=True,
        remove_pis=True
    )


def _parse_root(xml_text: Optional[str]):
    """Parse text into a root element, or None"""
    if not xml_text or not xml_text.strip():
        return None
    try:
        # lxml refuses str input carrying an encoding declaration
        return etree.fromstring(xml_text.strip().encode('utf-8'), parser=_safe_parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        logger.debug(f"Unparseable XML body: {e}")
        return None


def _local_name(element) -> Optional[str]:
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def _first_text(element, name: str) -> Optional[str]:
    """Text of the first descendant with the given local name, in any namespace"""
    for child in element.iter(f"{{*}}{name}"):
        if child.text and child.text.strip():
            return child.text.strip()
    return None


def _owner_name(element) -> Optional[str]:
    for owner in element.iter("{*}Owner"):
        return _first_text(owner, "DisplayName") or _first_text(owner, "ID")
    return None


def parse_list_bucket_xml(xml_text: Optional[str]) -> ListBucketResult:
    """Recognize a ``ListBucketResult`` document"""
    root = _parse_root(xml_text)
    if root is None or _local_name(root) != LIST_BUCKET_ROOT:
        return ListBucketResult()

    name = None
    for child in root:
        if _local_name(child) == "Name":
            name = (child.text or "").strip() or None
            break

    return ListBucketResult(is_s3=True, bucket_name=name, owner=_owner_name(root))


def parse_acl_xml(xml_text: Optional[str]) -> AclResult:
    """Recognize an ``AccessControlPolicy`` and union its AllUsers grants"""
    root = _parse_root(xml_text)
    if root is None or _local_name(root) != ACL_ROOT:
        return AclResult()

    result = AclResult(is_s3=True)

    for grant in root.iter("{*}Grant"):
        uri = None
        for grantee in grant.iter("{*}Grantee"):
            uri = _first_text(grantee, "URI")
            break
        permission = _first_text(grant, "Permission")
        result.grants.append((uri, permission))

        if uri != ALL_USERS_URI:
            continue
        if permission in READ_PERMISSIONS:
            result.public_read = True
        if permission in WRITE_PERMISSIONS:
            result.public_write = True

    for child in root:
        if _local_name(child) == "Owner":
            result.owner = _first_text(child, "DisplayName") or _first_text(child, "ID")
            break

    return result


def _header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """Case-insensitive header lookup that works on plain dicts too"""
    if not headers:
        return None
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, candidate in headers.items():
            if key.lower() == lowered:
                value = candidate
                break
    return value


def detect_vendor(headers: Optional[Mapping[str, str]],
                  signatures: Sequence[str] = DEFAULT_VENDOR_SIGNATURES) -> Optional[str]:
    """Return the storage vendor signature found in the Server header.

    A weak signal: any intermediary can set this header.
    """
    server = _header(headers, SERVER_HEADER)
    if not server:
        return None
    for signature in signatures:
        if signature in server:
            return signature
    return None


def extract_region(headers: Optional[Mapping[str, str]]) -> Optional[str]:
    region = _header(headers, REGION_HEADER)
    return region.strip() if region and region.strip() else None
