from typing import Dict, List

from pydantic import BaseModel, Field


class ConfigurationReport(BaseModel):
    configured: bool
    issues: List[str] = Field(default_factory=list)
    settings: Dict[str, str] = Field(default_factory=dict)
    kids: List[str] = Field(default_factory=list)
