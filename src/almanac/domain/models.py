from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional
from packaging.version import InvalidVersion, Version


class NodePackage(BaseModel):
    """represents a package document as served by an npm-style registry."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    description: str = ""
    dist_tags: Dict[str, str] = Field(default_factory=dict, alias="dist-tags")
    versions: Dict[str, Any] = Field(default_factory=dict)
    license: Optional[str] = None
    homepage: Optional[str] = None
    author: Optional[str] = None

    @field_validator("author", mode="before")
    @classmethod
    def _author_name(cls, value):
        # registries serve either "Name <mail>" or {"name": ..., "email": ...}
        if isinstance(value, dict):
            return value.get("name")
        return value

    @field_validator("license", mode="before")
    @classmethod
    def _license_type(cls, value):
        # legacy documents use {"type": "MIT", "url": ...}
        if isinstance(value, dict):
            return value.get("type")
        return value

    @property
    def latest_version(self) -> Optional[str]:
        return self.dist_tags.get("latest")

    @property
    def version_names(self) -> List[str]:
        return list(self.versions.keys())

    def newest_versions(self, limit: int = 5) -> List[str]:
        """most recent versions first. versions that don't parse are skipped."""
        parsed = []
        for v in self.versions:
            try:
                parsed.append((Version(v), v))
            except InvalidVersion:
                continue
        parsed.sort(reverse=True)
        return [v for _, v in parsed[:limit]]


class CheckResult(BaseModel):
    """outcome of comparing a locally known version with the registry."""
    name: str
    current: str
    latest: Optional[str] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def outdated(self) -> bool:
        if self.failed or not self.latest:
            return False
        try:
            return Version(self.latest) > Version(self.current)
        except InvalidVersion:
            return self.latest != self.current
