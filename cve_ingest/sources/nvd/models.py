"""
NVD JSON 1.1 archive feed document model.

Only the structure is validated here; interpretation happens in adapter.py.
Fields the adapter never reads are optional so that older feed years, which
omit some of them, still validate.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FeedModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LangString(FeedModel):
    lang: str = ''
    value: str = ''


class ProblemType(FeedModel):
    description: List[LangString] = Field(default_factory=list)


class ProblemTypes(FeedModel):
    problemtype_data: List[ProblemType] = Field(default_factory=list, alias='problemtype_data')


class Reference(FeedModel):
    url: str
    name: str = ''
    refsource: str = ''
    tags: List[str] = Field(default_factory=list)


class References(FeedModel):
    reference_data: List[Reference] = Field(default_factory=list, alias='reference_data')


class Descriptions(FeedModel):
    description_data: List[LangString] = Field(default_factory=list, alias='description_data')


class CveDataMeta(FeedModel):
    id: str = Field(alias='ID')
    assigner: str = Field(default='', alias='ASSIGNER')


class CveSection(FeedModel):
    data_type: str = Field(default='', alias='data_type')
    data_format: str = Field(default='', alias='data_format')
    data_version: str = Field(default='', alias='data_version')
    cve_data_meta: CveDataMeta = Field(alias='CVE_data_meta')
    problemtype: ProblemTypes = Field(default_factory=ProblemTypes)
    references: References = Field(default_factory=References)
    description: Descriptions = Field(default_factory=Descriptions)


class CpeMatch(FeedModel):
    vulnerable: bool
    cpe23_uri: str
    version_start_including: Optional[str] = None
    version_start_excluding: Optional[str] = None
    version_end_including: Optional[str] = None
    version_end_excluding: Optional[str] = None


class ConfigurationNode(FeedModel):
    operator: str = ''
    children: Optional[List['ConfigurationNode']] = None
    cpe_match: List[CpeMatch] = Field(default_factory=list, alias='cpe_match')


class Configurations(FeedModel):
    cve_data_version: str = Field(default='', alias='CVE_data_version')
    nodes: List[ConfigurationNode] = Field(default_factory=list)


class CvssV3(FeedModel):
    version: str = ''
    vector_string: str = ''
    attack_vector: str
    attack_complexity: str
    privileges_required: str
    user_interaction: str = ''
    scope: str = ''
    confidentiality_impact: str
    integrity_impact: str
    availability_impact: str
    base_score: float
    base_severity: str = ''


class BaseMetricV3(FeedModel):
    cvss_v3: CvssV3
    exploitability_score: Optional[float] = None
    impact_score: Optional[float] = None


class CvssV2(FeedModel):
    version: str = ''
    vector_string: str = ''
    access_vector: str
    access_complexity: str
    authentication: str
    confidentiality_impact: str
    integrity_impact: str
    availability_impact: str
    base_score: float


class BaseMetricV2(FeedModel):
    cvss_v2: CvssV2
    severity: str = ''
    exploitability_score: Optional[float] = None
    impact_score: Optional[float] = None
    ac_insuf_info: Optional[bool] = None
    obtain_all_privilege: Optional[bool] = None
    obtain_user_privilege: Optional[bool] = None
    obtain_other_privilege: Optional[bool] = None
    user_interaction_required: Optional[bool] = None


class ImpactMetrics(FeedModel):
    base_metric_v3: Optional[BaseMetricV3] = None
    base_metric_v2: Optional[BaseMetricV2] = None


class ArchiveItem(FeedModel):
    """One entry of CVE_Items"""

    cve: CveSection
    configurations: Configurations = Field(default_factory=Configurations)
    impact: ImpactMetrics = Field(default_factory=ImpactMetrics)
    published_date: str
    last_modified_date: str


class ArchiveDocument(FeedModel):
    """A whole yearly archive file"""

    cve_data_type: str = Field(default='', alias='CVE_data_type')
    cve_data_format: str = Field(default='', alias='CVE_data_format')
    cve_data_version: str = Field(default='', alias='CVE_data_version')
    cve_data_number_of_cves: str = Field(default='', alias='CVE_data_numberOfCVEs')
    cve_data_timestamp: str = Field(default='', alias='CVE_data_timestamp')
    cve_items: List[ArchiveItem] = Field(default_factory=list, alias='CVE_Items')
