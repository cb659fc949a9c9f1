"""
shakecheck - Find what blocks tree-shaking in JavaScript/TypeScript projects

Simple API:

    from shakecheck import analyze_project

    # Analyze project (with dependency graph rendering)
    result = analyze_project("my_app", output="shakecheck_results", format="svg")
    print(f"Issues: {result['summary']['total_issues']}")

    # Findings only (unless the project config sets an output directory)
    result = analyze_project("my_app")
    for cycle in result["cycles"]:
        print(cycle.severity, " -> ".join(cycle.members))
"""


def analyze_project(*args, **kwargs):
    """Lazy import wrapper for analyze_project to avoid loading parsers at package import time."""
    from .api import analyze_project as _analyze_project

    return _analyze_project(*args, **kwargs)


from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("shakecheck")
except PackageNotFoundError:
    # Fallback for development/uninstalled package
    __version__ = "unknown"

__all__ = ["analyze_project", "__version__"]
