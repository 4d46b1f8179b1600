"""Version information for the Azure infrastructure client

Version Format:
- Python package version: "0.4.0" (no "v" prefix, PEP 440 compliant)
- Git tags: "v0.4.0" (with "v" prefix, Git convention)
"""

__version__ = "0.4.0"
__description__ = "Azure client factory, long-running operation wrappers and credential resolution for infrastructure controllers"
