# fetchers/__init__.py
from .npm import fetch_npm_info
from .github import fetch_github_info
from .gitlab import fetch_gitlab_info

# Probed in this order for every item, keyed on repo falling back to url.
HOSTING_FETCHERS = {
    "github": fetch_github_info,
    "gitlab": fetch_gitlab_info,
}

__all__ = ["fetch_npm_info", "fetch_github_info", "fetch_gitlab_info", "HOSTING_FETCHERS"]
