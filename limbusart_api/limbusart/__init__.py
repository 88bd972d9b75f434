"""Random art page + link resolution core.

This package contains:
- The art registry (one source URL per line) with incremental reload
- Per-site resolvers turning a post URL into a direct image URL
- An in-process cache of resolved links
- FastAPI app that serves a random art page
- Maintenance jobs ported from the old shell helpers

The resolution core does not depend on the API layer; the API and CLI simply
call into `limbusart.state.AppState`.
"""

__version__ = "0.3.0"

__all__ = [
    "settings",
    "logging_conf",
]
