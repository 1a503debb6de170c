"""Distribution module: locating and updating the CodeQL CLI.

- DistributionManager: Source-priority resolution, update checks, installs
- Result types: FindDistributionResult and DistributionUpdateCheckResult variants
- Notifier: Sink for user-facing messages
"""

from .manager import DistributionManager
from .notifications import Notifier
from .results import (
    AlreadyCheckedRecently,
    AlreadyUpToDate,
    CompatibleDistribution,
    DistributionUpdateCheckResult,
    FindDistributionResult,
    IncompatibleDistribution,
    InvalidLocation,
    NoDistribution,
    UnknownCompatibilityDistribution,
    UpdateAvailable,
)

__all__ = [
    "DistributionManager",
    "Notifier",
    "AlreadyCheckedRecently",
    "AlreadyUpToDate",
    "CompatibleDistribution",
    "DistributionUpdateCheckResult",
    "FindDistributionResult",
    "IncompatibleDistribution",
    "InvalidLocation",
    "NoDistribution",
    "UnknownCompatibilityDistribution",
    "UpdateAvailable",
]
