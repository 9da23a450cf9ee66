from enum import Enum
from typing import List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Complexity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RiskLevel(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MODERATE = "Moderate"
    LOW = "Low"
    SAFE = "Safe"


class Severity(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class ModuleKind(str, Enum):
    FILE = "file"
    DIR = "dir"


class _WireModel(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ModuleInsight(_WireModel):
    path: str = Field(..., description="File path e.g. src/app.ts")
    kind: ModuleKind = Field(..., alias="type")
    description: str = Field(..., description="Function of this file")
    dependencies: List[str] = Field(..., description="Internal modules or external libs it depends on")
    potential_issues: List[str] = Field(..., description="Potential problems or code smells")


class BlueprintFile(_WireModel):
    path: str
    content: str
    description: str


class Vulnerability(_WireModel):
    severity: Severity
    type: str
    description: str


class SecurityAssessment(_WireModel):
    score: int
    risk_level: RiskLevel
    vulnerabilities: List[Vulnerability]
    compliance_check: List[str] = Field(..., description="e.g. 'License Found', 'No Hardcoded Secrets'")


class AnalysisResult(_WireModel):
    summary: str = Field(..., description="Professional executive summary.")
    purpose: str = Field(..., description="Core problem and solution.")
    tech_stack: List[str]
    key_features: List[str]
    installation: str
    complexity: Complexity
    use_cases: List[str]
    innovation_score: int = Field(..., description="Innovation rating, 0-100.")
    suggested_improvements: List[str]
    repo_structure: List[ModuleInsight] = Field(..., description="Detailed analysis of key files/modules.")
    project_blueprint: List[BlueprintFile] = Field(..., description="3-4 essential files to replicate functionality.")
    security_analysis: SecurityAssessment
