"""labcli - operate GitLab merge requests and issues from a git working copy.

The command line entry point is ``lab`` (or ``python -m labcli``). The core
pieces are importable for reuse:

from labcli import discover_remote, parse_remote_url, select_operation

identity = parse_remote_url("ssh://git@gitlab.com/acme/widgets.git")
identity.full_name  # 'acme/widgets'
"""

from __future__ import annotations

# Version constant (sync manually with pyproject)
__version__ = "0.1.0"

from .errors import LabError  # noqa: E402
from .models import CreateUpdateOptions, ListOptions, RemoteIdentity  # noqa: E402
from .operations import OperationContext, select_operation  # noqa: E402
from .remote import discover_remote, parse_remote_url  # noqa: E402

__all__ = [
    "LabError",
    "RemoteIdentity",
    "ListOptions",
    "CreateUpdateOptions",
    "OperationContext",
    "discover_remote",
    "parse_remote_url",
    "select_operation",
    "__version__",
]
