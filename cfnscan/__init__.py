"""CloudFormation security scanner package."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("cfn-security-scanner")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0-dev"

from .engine import Engine  # noqa: E402
from .registry import RuleRegistry, ValidationError  # noqa: E402
from .result import Finding, FindingStatus  # noqa: E402
from .rules import INAPPLICABLE, EvaluationContext, RuleDescriptor, RuleResult  # noqa: E402
from .severity import Severity  # noqa: E402

__all__ = [
    "__version__",
    "Engine",
    "EvaluationContext",
    "Finding",
    "FindingStatus",
    "INAPPLICABLE",
    "RuleDescriptor",
    "RuleRegistry",
    "RuleResult",
    "Severity",
    "ValidationError",
]
