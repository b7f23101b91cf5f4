from .step_10_detect_package_manager import DetectPackageManagerStep
from .step_20_install_firejail import InstallFirejailStep
from .step_30_build_from_source import BuildFromSourceStep
from .step_40_fetch_profiles import FetchProfilesStep
from .step_50_whitelist_profiles import WhitelistProfilesStep

__all__ = [
    "DetectPackageManagerStep",
    "InstallFirejailStep",
    "BuildFromSourceStep",
    "FetchProfilesStep",
    "WhitelistProfilesStep",
]
