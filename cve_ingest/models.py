"""
Canonical vulnerability record shared by every source.

The delta feed delivers records in this shape directly (the aliases are the
upstream field spellings); the archive feed reaches it through the schema
adapter in sources/nvd/adapter.py.
"""

import json
from typing import Any, Callable, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_numbers(value: Any) -> Any:
    # 1 and 1.0 are the same JSON number
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {k: _normalize_numbers(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize_numbers(v) for v in value]
    return value


def canonical_json(value: Any) -> str:
    """Stable JSON text for a structured value, used as its interning key.

    Object keys are sorted, separators are compact and integral floats are
    written as integers, so values that compare equal as JSON share one key.
    """
    return json.dumps(_normalize_numbers(value), sort_keys=True, separators=(',', ':'))


def unique_in_order(values: Iterable[Any],
                    key: Optional[Callable[[Any], Any]] = None) -> List[Any]:
    """Drop repeated values, keeping the first occurrence and the original order"""
    seen = set()
    result = []
    for value in values:
        marker = key(value) if key else value
        if marker in seen:
            continue
        seen.add(marker)
        result.append(value)
    return result


class AccessVector(BaseModel):
    model_config = ConfigDict(frozen=True)

    authentication: Optional[str] = None
    complexity: Optional[str] = None
    vector: Optional[str] = None


class ImpactTriad(BaseModel):
    model_config = ConfigDict(frozen=True)

    availability: Optional[str] = None
    confidentiality: Optional[str] = None
    integrity: Optional[str] = None


class Capec(BaseModel):
    """CAPEC attack pattern attached to a record by the delta feed"""

    id: str
    name: str = ''
    prerequisites: str = ''
    related_weakness: List[str] = Field(default_factory=list)
    solutions: str = ''
    summary: str = ''


class CanonicalRecord(BaseModel):
    """One advisory, keyed by its CVE identifier.

    Timestamps are timezone-less UTC strings (``YYYY-MM-DDTHH:MM:SS``).
    The four collection fields are ordered sets: duplicates are dropped on
    construction, first occurrence wins.
    """

    model_config = ConfigDict(populate_by_name=True)

    natural_id: str = Field(alias='id')
    modified_at: str = Field(alias='Modified')
    published_at: str = Field(alias='Published')
    last_modified: str = Field(alias='last-modified')
    assigner: str = ''
    cvss_score: Optional[float] = Field(default=None, alias='cvss')
    cvss_time: Optional[str] = Field(default=None, alias='cvss-time')
    cvss_vector: Optional[str] = Field(default=None, alias='cvss-vector')
    cwe: str = ''
    summary: str = ''
    access: AccessVector = Field(default_factory=AccessVector)
    impact: ImpactTriad = Field(default_factory=ImpactTriad)
    capec: List[Capec] = Field(default_factory=list)
    references: List[str] = Field(default_factory=list)
    vulnerable_configurations: List[str] = Field(
        default_factory=list, alias='vulnerable_configuration')
    vulnerable_configurations_cpe22: List[Any] = Field(
        default_factory=list, alias='vulnerable_configuration_cpe_2_2')
    vulnerable_products: List[str] = Field(
        default_factory=list, alias='vulnerable_product')

    @field_validator('access', 'impact', mode='before')
    @classmethod
    def _null_as_unset(cls, value):
        # the delta feed sends null for records without metrics
        return {} if value is None else value

    @field_validator('capec', 'references', 'vulnerable_configurations',
                     'vulnerable_configurations_cpe22', 'vulnerable_products', mode='before')
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value

    @field_validator('references', 'vulnerable_configurations', 'vulnerable_products')
    @classmethod
    def _dedupe_strings(cls, value: List[str]) -> List[str]:
        return unique_in_order(value)

    @field_validator('vulnerable_configurations_cpe22')
    @classmethod
    def _dedupe_structured(cls, value: List[Any]) -> List[Any]:
        return unique_in_order(value, key=canonical_json)
