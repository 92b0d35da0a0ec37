"""Workspace section of the agent system prompt, rendered with Jinja2.

Template variables available:

- ``summary``          : str        -- ``WorkspaceManager.get_summary()``
- ``primary_path``     : str | None -- primary workspace directory
- ``environment``      : str        -- metadata JSON (empty when no roots)
- ``workspace_names``  : list[str]  -- names in registration order
- ``multi_workspace``  : bool       -- more than one root configured

A custom template can be passed to ``render_workspace_prompt``; extra
variables override the defaults on conflict.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import jinja2

if TYPE_CHECKING:
    from polyroot.workspace.manager import WorkspaceManager

DEFAULT_TEMPLATE = """\
## Workspace Environment

{{ summary }}
{% if primary_path %}
Primary workspace: {{ primary_path }}
{% endif %}
{%- if environment %}

### Workspace Metadata

{{ environment }}
{% endif %}

### Path Usage

All file paths should be relative to the primary workspace directory. For example:
- To access a file in the current directory: "./filename.ext" or "filename.ext"
- To access a file in a subdirectory: "./subdir/filename.ext" or "subdir/filename.ext"
- Do NOT prefix paths with the working directory name.
{% if multi_workspace %}
### Workspace Hints

Use @workspace:path syntax to explicitly target a workspace:
{% for name in workspace_names %}
- @{{ name }}:path/to/file - targets the {{ name }} workspace
{% endfor %}
{%- endif %}
"""


def render_workspace_prompt(
    manager: WorkspaceManager,
    *,
    primary_path: str | os.PathLike[str] | None = None,
    template: str = DEFAULT_TEMPLATE,
    extra_vars: dict[str, object] | None = None,
) -> str:
    """Render the workspace prompt section for *manager*.

    Parameters
    ----------
    manager:
        Source of summary, roots and metadata.
    primary_path:
        Directory to present as primary.  Defaults to the primary root's path.
    template:
        Jinja2 template source.
    extra_vars:
        Additional template variables (override defaults on conflict).
    """
    roots = manager.get_roots()
    primary = manager.get_primary_root()
    if primary_path is None and primary is not None:
        primary_path = primary.path

    template_vars: dict[str, object] = {
        "summary": manager.get_summary(),
        "primary_path": os.fspath(primary_path) if primary_path is not None else None,
        "environment": manager.build_environment_context(),
        "workspace_names": [root.name for root in roots],
        "multi_workspace": len(roots) > 1,
    }
    if extra_vars:
        template_vars.update(extra_vars)

    env = jinja2.Environment(autoescape=False, trim_blocks=True, keep_trailing_newline=True)  # noqa: S701
    return env.from_string(template).render(**template_vars)
