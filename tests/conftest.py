import copy
import pytest

REPO_PAYLOAD = {
    "id": 1296269,
    "name": "Hello-World",
    "full_name": "octocat/Hello-World",
    "description": "My first repository on GitHub!",
    "stargazers_count": 1500,
    "forks_count": 42,
    "language": "Go",
    "html_url": "https://github.com/octocat/Hello-World",
    "owner": {"login": "octocat", "avatar_url": "https://github.com/images/error/octocat_happy.gif", "id": 1},
    "updated_at": "2011-01-26T19:14:43Z",
    "private": False,
}

ANALYSIS_PAYLOAD = {
    "summary": "A **minimal** greeting project.",
    "purpose": "Demonstrates the GitHub workflow.",
    "techStack": ["Go", "Shell"],
    "keyFeatures": ["Prints a greeting"],
    "installation": "`go build ./...`",
    "complexity": "Medium",
    "useCases": ["Onboarding"],
    "innovationScore": 72,
    "suggestedImprovements": ["Add tests"],
    "repoStructure": [
        {
            "path": "main.go",
            "type": "file",
            "description": "Entry point",
            "dependencies": ["fmt"],
            "potentialIssues": ["No error handling"],
        },
        {
            "path": "scripts",
            "type": "dir",
            "description": "Helper scripts",
            "dependencies": [],
            "potentialIssues": [],
        },
    ],
    "projectBlueprint": [
        {"path": "main.go", "content": "package main\n\nfunc main() {}\n", "description": "Entry point"},
    ],
    "securityAnalysis": {
        "score": 88,
        "riskLevel": "Low",
        "vulnerabilities": [
            {"severity": "Low", "type": "Supply chain", "description": "<script>unpinned</script> dependencies"},
        ],
        "complianceCheck": ["License Found", "No Hardcoded Secrets"],
    },
}


@pytest.fixture
def repo_payload():
    return copy.deepcopy(REPO_PAYLOAD)


@pytest.fixture
def analysis_payload():
    return copy.deepcopy(ANALYSIS_PAYLOAD)
