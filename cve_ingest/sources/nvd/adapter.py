"""
NVD archive item -> CanonicalRecord

Qualitative CVSS fields prefer the v3 metric block and fall back to v2.
The numeric score comes from v3 only; the v2 base score is never used.
"""

import logging
from datetime import datetime
from typing import Optional

from ...models import AccessVector, CanonicalRecord, ImpactTriad, unique_in_order
from ..base.exceptions import MalformedTimestamp
from .models import ArchiveItem

logger = logging.getLogger(__name__)

UPSTREAM_TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%MZ'
CANONICAL_TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S'


def to_canonical_timestamp(value: str) -> str:
    """Re-emit an upstream ``2020-01-02T03:04Z`` timestamp as ``2020-01-02T03:04:00``"""
    try:
        parsed = datetime.strptime(value, UPSTREAM_TIMESTAMP_FORMAT)
    except (TypeError, ValueError) as e:
        raise MalformedTimestamp(
            f"Cannot parse timestamp {value!r}", source_name='nvd',
            value=value, expected_format=UPSTREAM_TIMESTAMP_FORMAT) from e
    return parsed.strftime(CANONICAL_TIMESTAMP_FORMAT)


def _first_cwe(item: ArchiveItem) -> str:
    problemtype_data = item.cve.problemtype.problemtype_data
    if problemtype_data and problemtype_data[0].description:
        return problemtype_data[0].description[0].value
    return ''


def _summary(item: ArchiveItem) -> str:
    descriptions = item.cve.description.description_data
    return descriptions[0].value if descriptions else ''


def _cvss_score(item: ArchiveItem) -> Optional[float]:
    v3 = item.impact.base_metric_v3
    return v3.cvss_v3.base_score if v3 else None


def _access(item: ArchiveItem) -> AccessVector:
    v3 = item.impact.base_metric_v3
    if v3:
        return AccessVector(
            authentication=v3.cvss_v3.privileges_required,
            complexity=v3.cvss_v3.attack_complexity,
            vector=v3.cvss_v3.attack_vector,
        )
    v2 = item.impact.base_metric_v2
    if v2:
        return AccessVector(
            authentication=v2.cvss_v2.authentication,
            complexity=v2.cvss_v2.access_complexity,
            vector=v2.cvss_v2.access_vector,
        )
    return AccessVector()


def _impact(item: ArchiveItem) -> ImpactTriad:
    v3 = item.impact.base_metric_v3
    if v3:
        return ImpactTriad(
            availability=v3.cvss_v3.availability_impact,
            confidentiality=v3.cvss_v3.confidentiality_impact,
            integrity=v3.cvss_v3.integrity_impact,
        )
    v2 = item.impact.base_metric_v2
    if v2:
        return ImpactTriad(
            availability=v2.cvss_v2.availability_impact,
            confidentiality=v2.cvss_v2.confidentiality_impact,
            integrity=v2.cvss_v2.integrity_impact,
        )
    return ImpactTriad()


def _vulnerable_configurations(item: ArchiveItem):
    # Top-level nodes only; nested children are not descended into.
    uris = (
        match.cpe23_uri
        for node in item.configurations.nodes
        for match in node.cpe_match
        if match.vulnerable
    )
    return unique_in_order(uris)


def adapt_item(item: ArchiveItem) -> CanonicalRecord:
    """
    Convert one archive item into a canonical record

    Raises:
        MalformedTimestamp: If publishedDate or lastModifiedDate is not in
            the ``%Y-%m-%dT%H:%MZ`` format
    """
    modified = to_canonical_timestamp(item.last_modified_date)
    published = to_canonical_timestamp(item.published_date)

    return CanonicalRecord(
        natural_id=item.cve.cve_data_meta.id,
        modified_at=modified,
        published_at=published,
        last_modified=modified,
        assigner=item.cve.cve_data_meta.assigner,
        cvss_score=_cvss_score(item),
        cwe=_first_cwe(item),
        summary=_summary(item),
        access=_access(item),
        impact=_impact(item),
        references=unique_in_order(ref.url for ref in item.cve.references.reference_data),
        vulnerable_configurations=_vulnerable_configurations(item),
    )
