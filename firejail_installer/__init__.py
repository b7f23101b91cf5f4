"""Firejail installer and sandboxed service launcher.

What it does:
- Detect the host package manager (apt-get, dnf, zypper, yum)
- Install firejail, optionally rebuilding it from upstream source
- Fetch extra profiles and patch whitelist directives idempotently
- Launch well-known daemons under firejail from an interactive menu

All sandboxing is done by the external firejail binary.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
