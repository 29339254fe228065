"""Built-in component pattern contributors."""

from compsentinel.engines.component_patterns.contributors.apk_package import ApkPackageContributor
from compsentinel.engines.component_patterns.contributors.linux_distribution import (
    LinuxDistributionContributor,
)
from compsentinel.engines.component_patterns.contributors.npm_package import NpmPackageContributor
from compsentinel.engines.component_patterns.contributors.python_dist_info import (
    PythonDistInfoContributor,
)

__all__ = [
    "ApkPackageContributor",
    "LinuxDistributionContributor",
    "NpmPackageContributor",
    "PythonDistInfoContributor",
]
